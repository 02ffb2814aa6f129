import random

# Independent random streams of one game
CONTEXT_STREAM = "context" # RANDOM_VALUE draws and pool shuffling
POOL_STREAM = "pool" # frequency engine rolls


def get_seeded_rng(seed: int, stream: str = CONTEXT_STREAM) -> random.Random:
    """Returns a random.Random for one stream of the game seeded by `seed`."""
    return random.Random(f"{seed}:{stream}")
