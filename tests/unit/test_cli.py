import os
import shutil
import logging
import tempfile
import contextlib
import unittest
from unittest import mock
from io import StringIO

from mpenc import __version__
from mpenc import cli
from mpenc.cli import main, setup_logging, get_argument_parser
from mpenc.conf import Config


class CLITestCase(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.temp_dir, True)
        self.addCleanup(self.reset_logger)
        self.key_dir = os.path.join(self.temp_dir, 'keys')
        self.config = os.path.join(self.temp_dir, 'settings.yml')
        with open(self.config, 'w') as fd:
            fd.write('{}\n')

    @staticmethod
    def reset_logger():
        cli.log.setLevel(logging.NOTSET)
        while cli.log.handlers:
            cli.log.removeHandler(cli.log.handlers[0])

    def path(self, name):
        return os.path.join(self.temp_dir, name)

    def run_cli(self, *argv):
        stdout = StringIO()
        with contextlib.redirect_stdout(stdout):
            code = main(['--quiet', '--config', self.config, '--key-dir', self.key_dir] + list(argv))
        self.reset_logger()
        return code, stdout.getvalue()


class CLICommandsTest(CLITestCase):

    def test_version(self):
        code, out = self.run_cli('--version')
        self.assertEqual(code, 0)
        self.assertEqual(out, f"mpenc {__version__}\n")

    def test_help_without_command(self):
        code, out = self.run_cli()
        self.assertEqual(code, 0)
        self.assertIn('keygen', out)

    def test_keygen(self):
        self.assertEqual(self.run_cli('keygen', 'alice')[0], 0)
        self.assertEqual(
            sorted(os.listdir(self.key_dir)),
            ['alice.enc.key', 'alice.enc.pub', 'alice.sign.key', 'alice.sign.pub']
        )
        # existing keys are kept unless overwriting is enabled
        with open(os.path.join(self.key_dir, 'alice.enc.key'), 'rb') as fd:
            original = fd.read()
        self.assertEqual(self.run_cli('keygen', 'alice')[0], 1)
        with open(os.path.join(self.key_dir, 'alice.enc.key'), 'rb') as fd:
            self.assertEqual(fd.read(), original)
        self.assertEqual(self.run_cli('--overwrite-keys', 'keygen', 'alice')[0], 0)
        with open(os.path.join(self.key_dir, 'alice.enc.key'), 'rb') as fd:
            self.assertNotEqual(fd.read(), original)

    def test_keygen_writes_into_key_dir_only(self):
        cwd = os.getcwd()
        os.chdir(self.temp_dir)
        self.addCleanup(os.chdir, cwd)
        with open('alice', 'w') as fd:
            fd.write('important notes')
        self.assertEqual(self.run_cli('--overwrite-keys', 'keygen', 'alice')[0], 0)
        with open('alice') as fd:
            self.assertEqual(fd.read(), 'important notes')
        self.assertEqual(
            sorted(os.listdir(self.key_dir)),
            ['alice.enc.key', 'alice.enc.pub', 'alice.sign.key', 'alice.sign.pub']
        )

    def test_keygen_leaves_partial_key_set_alone(self):
        os.makedirs(self.key_dir)
        with open(os.path.join(self.key_dir, 'bob.sign.key'), 'wb') as fd:
            fd.write(b'stale')
        with self.assertLogs('mpenc', level='ERROR') as cm:
            code, _ = self.run_cli('keygen', 'bob')
        self.assertEqual(code, 1)
        self.assertIn('Key files already exist', cm.output[0])
        self.assertIn('bob.sign.key', cm.output[0])
        self.assertEqual(os.listdir(self.key_dir), ['bob.sign.key'])
        with open(os.path.join(self.key_dir, 'bob.sign.key'), 'rb') as fd:
            self.assertEqual(fd.read(), b'stale')

    def test_encrypt_decrypt(self):
        for name in ('alice', 'bob', 'carol'):
            self.assertEqual(self.run_cli('keygen', name)[0], 0)
        with open(self.path('plain.txt'), 'wb') as fd:
            fd.write(b'attack at dawn')

        code, _ = self.run_cli(
            'encrypt', self.path('plain.txt'), self.path('sealed'),
            '--signer', 'alice', '--recipient', 'alice',
            '--recipient', os.path.join(self.key_dir, 'bob.enc.pub')
        )
        self.assertEqual(code, 0)

        code, out = self.run_cli('recipients', self.path('sealed'))
        self.assertEqual(code, 0)
        self.assertEqual(len(out.split()), 2)

        code, _ = self.run_cli('decrypt', self.path('sealed'), self.path('bob.txt'), '--key', 'bob', '--sender', 'alice')
        self.assertEqual(code, 0)
        with open(self.path('bob.txt'), 'rb') as fd:
            self.assertEqual(fd.read(), b'attack at dawn')

        with self.assertLogs('mpenc', level='ERROR') as cm:
            code, _ = self.run_cli(
                'decrypt', self.path('sealed'), self.path('carol.txt'), '--key', 'carol', '--sender', 'alice'
            )
        self.assertEqual(code, 1)
        self.assertIn('No wrapped key for recipient', cm.output[0])
        self.assertFalse(os.path.exists(self.path('carol.txt')))

        code, _ = self.run_cli('decrypt', self.path('sealed'), self.path('bob.txt'), '--key', 'bob', '--sender', 'carol')
        self.assertEqual(code, 1)

    def test_missing_key_file(self):
        with open(self.path('plain.txt'), 'wb') as fd:
            fd.write(b'data')
        code, _ = self.run_cli(
            'encrypt', self.path('plain.txt'), self.path('sealed'), '--signer', 'nobody', '--recipient', 'nobody'
        )
        self.assertEqual(code, 1)

    def test_corrupt_envelope(self):
        with open(self.path('garbage'), 'wb') as fd:
            fd.write(b'\x00\x00\x00')
        with self.assertLogs('mpenc', level='ERROR') as cm:
            code, _ = self.run_cli('recipients', self.path('garbage'))
        self.assertEqual(code, 1)
        self.assertIn('recipients failed', cm.output[0])

    def test_invalid_log_level(self):
        with self.assertLogs('mpenc', level='ERROR') as cm:
            code, _ = self.run_cli('--log-level', 'LOUD', 'recipients', self.path('x'))
        self.assertEqual(code, 1)
        self.assertIn("Setting 'log_level' must be one of", cm.output[0])

        with mock.patch.dict(os.environ, {'MPENC_LOG_LEVEL': 'LOUD'}):
            with self.assertLogs('mpenc', level='ERROR') as cm:
                code, _ = self.run_cli('recipients', self.path('x'))
        self.assertEqual(code, 1)
        self.assertIn("Setting 'log_level' must be one of", cm.output[0])

    def test_config_must_be_yaml(self):
        with open(self.path('c.json'), 'w') as fd:
            fd.write('{}')
        with self.assertLogs('mpenc', level='ERROR') as cm:
            code, _ = self.run_cli('--config', self.path('c.json'), 'recipients', self.path('x'))
        self.assertEqual(code, 1)
        self.assertIn('must be YAML', cm.output[0])


class CLILoggingTest(CLITestCase):

    def get_logger(self, argv):
        logger = logging.getLogger('test-mpenc-logger')
        self.addCleanup(logger.handlers.clear)
        args = get_argument_parser().parse_args(argv)
        setup_logging(logger, args, Config.create_from_arguments(args, environ={}))
        return logger

    def test_default_level_from_config(self):
        log = self.get_logger(['--config', self.config, 'recipients', 'x'])
        self.assertTrue(log.isEnabledFor(logging.WARNING))
        self.assertFalse(log.isEnabledFor(logging.INFO))
        self.assertEqual(len(log.handlers), 1)
        self.assertIsInstance(log.handlers[0], logging.StreamHandler)

    def test_log_level_setting(self):
        log = self.get_logger(['--config', self.config, '--log-level', 'INFO', 'recipients', 'x'])
        self.assertTrue(log.isEnabledFor(logging.INFO))
        self.assertFalse(log.isEnabledFor(logging.DEBUG))

    def test_verbose(self):
        log = self.get_logger(['--config', self.config, '--verbose', 'recipients', 'x'])
        self.assertTrue(log.isEnabledFor(logging.DEBUG))

    def test_quiet(self):
        log = self.get_logger(['--config', self.config, '--quiet', 'recipients', 'x'])
        self.assertEqual(len(log.handlers), 1)
        self.assertIsInstance(log.handlers[0], logging.NullHandler)
