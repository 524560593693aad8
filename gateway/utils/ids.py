import random
import string

ALPHABET = string.digits + string.ascii_lowercase


def new_id(length: int = 8) -> str:
    # not a security token: uses the module-level PRNG
    return "".join(random.choices(ALPHABET, k=length))
