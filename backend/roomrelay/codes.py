import random
import string

DEFAULT_ALPHABET = string.ascii_uppercase + string.digits
DEFAULT_CODE_LENGTH = 6


def generate_room_code(length=DEFAULT_CODE_LENGTH, alphabet=DEFAULT_ALPHABET):
    """Generate a short, human-shareable room code.

    Uniqueness is the registry's job; this only draws characters.
    """
    if length < 1:
        raise ValueError('length must be >= 1')
    if not alphabet:
        raise ValueError('alphabet must not be empty')
    return ''.join(random.choices(alphabet, k=length))
