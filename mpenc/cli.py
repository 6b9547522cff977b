import os
import sys
import pathlib
import logging
import argparse

from mpenc import __version__
from mpenc.conf import Config
from mpenc.error import BaseError, KeyFileExistsError
from mpenc.envelope import seal, open_envelope, list_recipients
from mpenc.crypto.keys import (
    generate_encryption_pair, generate_signing_pair,
    encode_private_encryption_key, decode_private_encryption_key,
    encode_public_encryption_key, decode_public_encryption_key,
    encode_private_signing_key, decode_private_signing_key,
    encode_public_signing_key, decode_public_signing_key
)

log = logging.getLogger('mpenc')

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s:%(lineno)d: %(message)s"

KEY_FILES = {
    'enc.key': encode_private_encryption_key,
    'enc.pub': encode_public_encryption_key,
    'sign.key': encode_private_signing_key,
    'sign.pub': encode_public_signing_key,
}


def get_argument_parser():
    root = argparse.ArgumentParser(
        'mpenc', description='Encrypt files once for many recipients.', allow_abbrev=False
    )
    root.add_argument(
        '-v', '--version', dest='cli_version', action="store_true",
        help='Show mpenc version and exit.'
    )
    root.add_argument(
        '--verbose', dest='verbose', action="store_true",
        help='Enable debug output for the mpenc logger.'
    )
    root.add_argument(
        '--quiet', dest='quiet', action="store_true",
        help='Disable all console logging.'
    )
    Config.contribute_to_argparse(root)
    root.set_defaults(command=None)
    sub = root.add_subparsers(metavar='COMMAND')

    keygen = sub.add_parser('keygen', help='Generate encryption and signing key pairs.')
    keygen.add_argument('name', help='Base name of the four key files written to the key directory.')
    keygen.set_defaults(command='keygen')

    encrypt = sub.add_parser('encrypt', help='Seal a file for one or more recipients.')
    encrypt.add_argument('input', help='File to encrypt.')
    encrypt.add_argument('output', help='Where to write the envelope.')
    encrypt.add_argument('--signer', required=True, help='Key name whose signing key signs the envelope.')
    encrypt.add_argument(
        '--recipient', dest='recipients', action='append', required=True, metavar='PUBKEY',
        help='Public encryption key file or key name of a recipient, may be repeated.'
    )
    encrypt.set_defaults(command='encrypt')

    decrypt = sub.add_parser('decrypt', help='Open an envelope addressed to one of your keys.')
    decrypt.add_argument('input', help='Envelope to open.')
    decrypt.add_argument('output', help='Where to write the plaintext.')
    decrypt.add_argument('--key', required=True, help='Key name whose encryption key opens the envelope.')
    decrypt.add_argument('--sender', required=True, metavar='PUBKEY',
                         help='Public signing key file or key name of the sender.')
    decrypt.set_defaults(command='decrypt')

    recipients = sub.add_parser('recipients', help='List recipient identifiers of an envelope.')
    recipients.add_argument('input', help='Envelope to inspect.')
    recipients.set_defaults(command='recipients')

    return root


def setup_logging(logger: logging.Logger, args: argparse.Namespace, conf: Config):
    if args.quiet:
        logger.addHandler(logging.NullHandler())
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if args.verbose else conf.log_level)


def ensure_directory_exists(path: str):
    if not os.path.isdir(path):
        pathlib.Path(path).mkdir(parents=True, exist_ok=True)


def read_file(path: str) -> bytes:
    with open(path, 'rb') as f:
        return f.read()


def write_file(path: str, data: bytes):
    with open(path, 'wb') as f:
        f.write(data)


def key_file(conf: Config, name_or_path: str, suffix: str) -> str:
    if os.path.isfile(name_or_path):
        return name_or_path
    return os.path.join(conf.key_path, f'{name_or_path}.{suffix}')


def key_paths(conf: Config, name: str) -> dict:
    """ Paths keygen writes for a key name, always inside the key directory. """
    return {suffix: os.path.join(conf.key_path, f'{name}.{suffix}') for suffix in KEY_FILES}


def keygen(conf: Config, name: str):
    paths = key_paths(conf, name)
    existing = [path for path in paths.values() if os.path.exists(path)]
    if existing and not conf.overwrite_keys:
        raise KeyFileExistsError(existing)
    ensure_directory_exists(conf.key_path)
    private_encryption_key, public_encryption_key = generate_encryption_pair()
    private_signing_key, public_signing_key = generate_signing_pair()
    keys = {
        'enc.key': private_encryption_key,
        'enc.pub': public_encryption_key,
        'sign.key': private_signing_key,
        'sign.pub': public_signing_key,
    }
    for suffix, key in keys.items():
        write_file(paths[suffix], KEY_FILES[suffix](key))
        log.info("wrote %s", paths[suffix])


def encrypt(conf: Config, args):
    signing_key = decode_private_signing_key(read_file(key_file(conf, args.signer, 'sign.key')))
    recipients = [
        decode_public_encryption_key(read_file(key_file(conf, recipient, 'enc.pub')))
        for recipient in args.recipients
    ]
    envelope = seal(read_file(args.input), recipients, signing_key)
    write_file(args.output, envelope)
    log.info("sealed %s for %i recipients into %s", args.input, len(recipients), args.output)


def decrypt(conf: Config, args):
    private_key = decode_private_encryption_key(read_file(key_file(conf, args.key, 'enc.key')))
    verifying_key = decode_public_signing_key(read_file(key_file(conf, args.sender, 'sign.pub')))
    write_file(args.output, open_envelope(read_file(args.input), private_key, verifying_key))
    log.info("opened %s into %s", args.input, args.output)


def main(argv=None):
    argv = argv or sys.argv[1:]
    parser = get_argument_parser()
    args = parser.parse_args(argv)

    if args.cli_version:
        print(f"mpenc {__version__}")
        return 0
    if args.command is None:
        parser.print_help()
        return 0

    try:
        conf = Config.create_from_arguments(args)
        setup_logging(log, args, conf)
        if args.command == 'keygen':
            keygen(conf, args.name)
        elif args.command == 'encrypt':
            encrypt(conf, args)
        elif args.command == 'decrypt':
            decrypt(conf, args)
        elif args.command == 'recipients':
            for identifier in list_recipients(read_file(args.input)):
                print(identifier.hex())
    except (BaseError, OSError) as e:
        log.error("%s failed: %s", args.command, e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
