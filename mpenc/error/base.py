from binascii import hexlify


def identifier_hex(identifier):
    return hexlify(identifier).decode()


class BaseError(Exception):
    pass
