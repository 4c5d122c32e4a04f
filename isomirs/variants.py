"""
Variant field helpers for isomirs.

Annotation fields follow the seqbuster/miraligner notation, where "0"
means the sequence carries no change of that kind.
"""

import re

NUCLEOTIDES = re.compile(r'[ACGTUNacgtun]')
SUBSTITUTION = re.compile(r'^(\d+)([A-Za-z])([A-Za-z])$')
SEED_START = 2
SEED_END = 7


def normalize_field(value):
    """
    Coerce an annotation field to its string form.

    Args:
        value: Raw value read from the annotation table.

    Returns:
        The field as a string, with missing values mapped to "0".
    """
    if value is None:
        return '0'
    if isinstance(value, float):
        if value != value:
            return '0'
        return str(int(value))
    value = str(value).strip()
    if value in ('', 'NA', 'nan', 'NaN'):
        return '0'
    return value


def has_change(value):
    """Return True if the field describes at least one nucleotide change."""
    return bool(NUCLEOTIDES.search(normalize_field(value)))


def is_reference(mism, add, t5, t3):
    """
    Determine if a sequence is identical to the reference miRNA.

    Args:
        mism: Substitution field.
        add: Non-template addition field.
        t5: 5' end variation field.
        t3: 3' end variation field.

    Returns:
        True if none of the fields contains a nucleotide.
    """
    return not any(has_change(x) for x in (mism, add, t5, t3))


def trim_size(value, end):
    """
    Signed position of a trimming/extension event relative to the reference.

    Upper case nucleotides mean the read goes beyond the reference end and
    lower case nucleotides mean it is shorter. At the 5' end a longer read
    starts upstream, so extensions are negative there.

    Args:
        value: The t5 or t3 field.
        end: Either 't5' or 't3'.

    Returns:
        Signed integer position, or 0 if there is no change.
    """
    value = normalize_field(value)
    if not has_change(value):
        return 0
    length = len(value)
    extended = value.isupper()
    if end == 't5':
        return -length if extended else length
    if end == 't3':
        return length if extended else -length
    raise ValueError(f'Unknown end "{end}". Use "t5" or "t3"')


def parse_substitution(value):
    """
    Split a substitution field into its parts.

    Args:
        value: Field in the form <position><reference nt><read nt>, e.g. 7GT.

    Returns:
        Tuple (position, reference, current), or None if there is no change.
    """
    value = normalize_field(value)
    if value == '0':
        return None
    match = SUBSTITUTION.match(value)
    if not match:
        raise ValueError(f'Cannot parse substitution "{value}"')
    return int(match.group(1)), match.group(2).upper(), match.group(3).upper()


def seed_change(value):
    """Return the substitution if it falls in the seed region (nt 2-7), else "0"."""
    parsed = parse_substitution(value)
    if parsed is None:
        return '0'
    if SEED_START <= parsed[0] <= SEED_END:
        return normalize_field(value)
    return '0'
