class HuffmanError(Exception):
    """Base class for every failure raised by the codec."""


class TruncatedInput(HuffmanError, EOFError):
    """Fewer bytes or bits available than a read requires."""


class CorruptTree(HuffmanError, ValueError):
    """Tree bits do not describe a valid code tree."""


class CorruptStream(HuffmanError, ValueError):
    """Encoded data bits cannot have been produced by the given tree."""


class EmptyAlphabet(HuffmanError, ValueError):
    """Tree construction attempted with zero symbols."""
