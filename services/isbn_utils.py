"""
ISBN checks for book records

For isbn related info, see https://isbn-information.com/
"""
ISBN13_CHECKS = [1, 3, 1, 3, 1, 3, 1, 3, 1, 3, 1, 3, 1]
ISBN10_CHECKS = [10, 9, 8, 7, 6, 5, 4, 3, 2, 1]
VALID_PREFIX_ELEMENTS = ["978", "979"]
VALIDATION_ERRORS = {
    "length": "ISBN must have 10 or 13 digits.",
    "invalid": "ISBN has invalid characters.",
    "X": "'X' is only allowed as the last character of an ISBN 10.",
    "prefix": "ISBN 13 starts with invalid Prefix Element {}",
    "checksum": "ISBN check digit does not match.",
    }


def strip_isbn(isbn: str) -> str:
    return isbn.replace("-", "").replace(" ", "").upper()


def is_valid(isbn: str) -> bool:
    """
    Validates an ISBN 10 or 13

    Parameters
    ----------
    isbn : str
        An ISBN code (10 or 13), dashes and spaces allowed

    Returns
    -------
    bool
        True if the check digit matches, False otherwise.

    Raises
    ------
    ValueError
        If isbn has invalid characters or is not of proper length

    """
    stripped = strip_isbn(isbn)
    if len(stripped) not in (10, 13):
        raise ValueError(VALIDATION_ERRORS["length"])
    if any(char not in "0123456789X" for char in stripped):
        raise ValueError(VALIDATION_ERRORS["invalid"])
    if "X" in stripped[:-1] or ("X" in stripped and len(stripped) == 13):
        raise ValueError(VALIDATION_ERRORS["X"])
    if len(stripped) == 13:
        if stripped[:3] not in VALID_PREFIX_ELEMENTS:
            raise ValueError(VALIDATION_ERRORS["prefix"].format(stripped[:3]))
        return sum(a * int(b) for (a, b) in zip(ISBN13_CHECKS, stripped)) % 10 == 0
    digits = [10 if char == "X" else int(char) for char in stripped]
    return sum(a * b for (a, b) in zip(ISBN10_CHECKS, digits)) % 11 == 0


def normalize_isbn(isbn: str) -> str:
    """
    Strip an ISBN down to its digits, checking it on the way.

    Raises
    ------
    ValueError
        If the ISBN is malformed or its check digit is wrong
    """
    if not is_valid(isbn):
        raise ValueError(VALIDATION_ERRORS["checksum"])
    return strip_isbn(isbn)
