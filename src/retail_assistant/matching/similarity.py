"""Cheap lexical similarity between two short tokens."""

PREFIX_WEIGHT = 0.4
SUFFIX_WEIGHT = 0.3
JACCARD_WEIGHT = 0.3
MIN_TOKEN_LEN = 3


def _common_prefix_len(a: str, b: str) -> int:
    n = 0
    for x, y in zip(a, b):
        if x != y:
            break
        n += 1
    return n


def word_similarity(a: str, b: str) -> float:
    """Blend of shared prefix, shared suffix and character-set Jaccard, in [0, 1].

    Tokens shorter than three characters score 0 unless identical.
    """
    if a == b:
        return 1.0
    if len(a) < MIN_TOKEN_LEN or len(b) < MIN_TOKEN_LEN:
        return 0.0

    shorter = min(len(a), len(b))
    prefix = _common_prefix_len(a, b)
    suffix = _common_prefix_len(a[::-1], b[::-1])

    chars_a, chars_b = set(a), set(b)
    jaccard = len(chars_a & chars_b) / len(chars_a | chars_b)

    return (
        prefix / shorter * PREFIX_WEIGHT
        + suffix / shorter * SUFFIX_WEIGHT
        + jaccard * JACCARD_WEIGHT
    )
