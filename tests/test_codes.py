from components.otp import codes


def test_generate_code_is_six_digits():
    for _ in range(200):
        code = codes.generate_code()
        assert len(code) == 6
        assert code.isdigit()
        assert 100000 <= int(code) <= 999999


def test_fallback_token_is_uppercase_alphanumeric():
    token = codes.generate_fallback_token()
    assert len(token) == 8
    assert all(ch.isdigit() or ("A" <= ch <= "Z") for ch in token)
    assert len(codes.generate_fallback_token(12)) == 12


def test_digest_is_keyed_and_not_the_code():
    digest = codes.digest_code("123456", "secret")
    assert len(digest) == 64
    assert "123456" not in digest
    assert digest == codes.digest_code("123456", "secret")
    assert digest != codes.digest_code("123456", "other-secret")
    assert digest != codes.digest_code("654321", "secret")


def test_codes_match_ignores_surrounding_whitespace():
    digest = codes.digest_code("123456", "secret")
    assert codes.codes_match(" 123456 ", digest, "secret")
    assert not codes.codes_match("123457", digest, "secret")
    assert not codes.codes_match("123456", digest, "other-secret")
