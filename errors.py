class HuffmanError(Exception): # base for every failure of a single encode/decode call
    pass


class InputUnreadableError(HuffmanError, OSError):
    pass


class OutputUnwritableError(HuffmanError, OSError):
    pass


class MalformedHeaderError(HuffmanError, ValueError):
    pass


class CorruptTreeError(HuffmanError, ValueError): # decode walked off a missing child
    pass


class TruncatedStreamError(HuffmanError, EOFError): # body ended before every symbol was decoded
    pass


class EmptyInputError(HuffmanError, ValueError):
    pass
