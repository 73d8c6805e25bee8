"""Conversion of identifiers between letter-case conventions."""

from __future__ import annotations

import enum


class Case(enum.IntEnum):
    """A letter-case convention."""

    UPPER = 0
    LOWER = 1
    UPPER_CAMEL = 2
    LOWER_CAMEL = 3
    UPPER_UNDERSCORE = 4
    LOWER_UNDERSCORE = 5

    def __str__(self) -> str:
        return _CASE_NAMES.get(self, "UnsupportedCase")

    def format(self, text: str, to: "Case") -> str:
        """Convert text written in this case into the case given by to."""
        to_upper = to in (Case.UPPER, Case.UPPER_UNDERSCORE)
        to_lower = to in (Case.LOWER, Case.LOWER_UNDERSCORE)
        to_camel = to in (Case.UPPER_CAMEL, Case.LOWER_CAMEL)
        to_underscore = to in (Case.UPPER_UNDERSCORE, Case.LOWER_UNDERSCORE)
        from_camel = self in (Case.UPPER_CAMEL, Case.LOWER_CAMEL)
        from_underscore = self in (Case.UPPER_UNDERSCORE, Case.LOWER_UNDERSCORE)

        result: list[str] = []
        has_underscore = False
        for position, char in enumerate(text):
            make_upper = to_upper
            make_lower = to_lower and not to_upper
            if position == 0:
                if to == Case.LOWER_CAMEL:
                    char = char.lower()
                elif to == Case.UPPER_CAMEL:
                    char = char.upper()
            else:
                if from_underscore and to_camel:
                    if char == "_":
                        has_underscore = True
                        continue
                    if has_underscore:
                        make_upper = True
                        has_underscore = False
                    else:
                        make_lower = True
                if char.isupper() and from_camel and to_underscore:
                    after_underscore = (
                        position > 1 and len(result) >= 2 and result[-2] == "_"
                    )
                    if not after_underscore:
                        result.append("_")
            if make_lower:
                char = char.lower()
            elif make_upper:
                char = char.upper()
            result.append(char)
        return "".join(result)


_CASE_NAMES = {
    Case.UPPER: "Upper",
    Case.LOWER: "Lower",
    Case.UPPER_CAMEL: "UpperCamel",
    Case.LOWER_CAMEL: "UpperCamel",
    Case.UPPER_UNDERSCORE: "UpperUnderscore",
    Case.LOWER_UNDERSCORE: "LowerUnderscore",
}

_CASE_ALIASES = {
    "upper": Case.UPPER,
    "u": Case.UPPER,
    "lower": Case.LOWER,
    "l": Case.LOWER,
    "lowercamel": Case.LOWER_CAMEL,
    "lc": Case.LOWER_CAMEL,
    "uppercamel": Case.UPPER_CAMEL,
    "uc": Case.UPPER_CAMEL,
    "lowerunderscore": Case.LOWER_UNDERSCORE,
    "lu": Case.LOWER_UNDERSCORE,
    "upperunderscore": Case.UPPER_UNDERSCORE,
    "uu": Case.UPPER_UNDERSCORE,
}


def new_case(name: str) -> Case:
    """Return the Case for a case-insensitive name such as "upper", "lc" or "upperUnderscore"."""
    try:
        return _CASE_ALIASES[name.lower()]
    except KeyError:
        raise ValueError(f"unsupported case format: {name}") from None