import pytest

from toolbelt.case_format import Case, new_case


@pytest.mark.parametrize(
    "case_from, case_to, text, expected",
    [
        (Case.LOWER_CAMEL, Case.UPPER, "thisIsMyTest", "THISISMYTEST"),
        (Case.LOWER_CAMEL, Case.LOWER_UNDERSCORE, "thisIsMyTest", "this_is_my_test"),
        (Case.LOWER_CAMEL, Case.UPPER_UNDERSCORE, "thisIsMyTest", "THIS_IS_MY_TEST"),
        (Case.LOWER_UNDERSCORE, Case.UPPER_CAMEL, "this_is_my_test", "ThisIsMyTest"),
        (Case.UPPER_UNDERSCORE, Case.LOWER_CAMEL, "THIS_IS_MY_TEST", "thisIsMyTest"),
        (Case.UPPER_CAMEL, Case.LOWER_CAMEL, "ThisIsMyTest", "thisIsMyTest"),
        (Case.UPPER_CAMEL, Case.UPPER_UNDERSCORE, "ClientID", "CLIENT_ID"),
    ],
)
def test_format(case_from, case_to, text, expected):
    assert case_from.format(text, case_to) == expected


@pytest.mark.parametrize(
    "name, expected",
    [
        ("upper", Case.UPPER),
        ("U", Case.UPPER),
        ("lower", Case.LOWER),
        ("l", Case.LOWER),
        ("lowerCamel", Case.LOWER_CAMEL),
        ("lc", Case.LOWER_CAMEL),
        ("UpperCamel", Case.UPPER_CAMEL),
        ("uc", Case.UPPER_CAMEL),
        ("lowerunderscore", Case.LOWER_UNDERSCORE),
        ("lu", Case.LOWER_UNDERSCORE),
        ("UpperUnderscore", Case.UPPER_UNDERSCORE),
        ("uu", Case.UPPER_UNDERSCORE),
    ],
)
def test_new_case(name, expected):
    assert new_case(name) is expected


def test_new_case_unsupported():
    with pytest.raises(ValueError, match="unsupported case format"):
        new_case("kebab")


@pytest.mark.parametrize(
    "name, expected",
    [
        ("u", "Upper"),
        ("l", "Lower"),
        ("uu", "UpperUnderscore"),
        ("lu", "LowerUnderscore"),
    ],
)
def test_case_names(name, expected):
    assert str(new_case(name)) == expected