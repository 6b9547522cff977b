import unittest

from mpenc import error


class TestErrors(unittest.TestCase):

    def test_hierarchy(self):
        self.assertTrue(issubclass(error.TruncatedHeaderError, error.FramingError))
        self.assertTrue(issubclass(error.TruncatedPayloadError, error.FramingError))
        self.assertTrue(issubclass(error.FramingError, error.CodecError))
        self.assertTrue(issubclass(error.KeyDecodingError, error.KeyMaterialError))
        self.assertTrue(issubclass(error.RecipientNotFoundError, error.EnvelopeError))
        for name in dir(error):
            cls = getattr(error, name)
            if isinstance(cls, type) and issubclass(cls, Exception):
                self.assertTrue(issubclass(cls, error.BaseError), name)

    def test_messages(self):
        self.assertEqual(
            str(error.TruncatedPayloadError(8, 6, 4)),
            "Record declares 6 payload bytes but only 4 remain. (at byte 8)"
        )
        self.assertEqual(
            str(error.RecipientNotFoundError(b'\x00\x01\x02\xff')),
            "No wrapped key for recipient '000102ff' in envelope."
        )
        self.assertEqual(
            str(error.KeyDecodingError('public signing key', 'bad DER')),
            "Cannot decode public signing key: bad DER"
        )

    def test_configuration_messages(self):
        self.assertEqual(
            str(error.InvalidSettingError('log_level', 'must be one of: DEBUG, INFO')),
            "Setting 'log_level' must be one of: DEBUG, INFO."
        )
        self.assertIsInstance(error.InvalidSettingError('x', 'y'), ValueError)
        self.assertEqual(
            str(error.UnsupportedConfigFormatError('c.json', ('.yml', '.yaml'))),
            "Configuration file 'c.json' must be YAML (.yml, .yaml)."
        )
        self.assertTrue(issubclass(error.KeyFileExistsError, error.KeyMaterialError))
