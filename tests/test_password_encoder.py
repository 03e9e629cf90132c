from userdesk.user_management.security import PasswordEncoder


def test_bcrypt_is_the_default_scheme():
    encoder = PasswordEncoder()

    encoded = encoder.encode("secret123")

    assert encoded.startswith("$2b$")
    assert encoder.verify("secret123", encoded)
    assert not encoder.verify("secret124", encoded)


def test_same_password_gets_a_fresh_salt(encoder):
    first = encoder.encode("secret123")
    second = encoder.encode("secret123")

    assert first != second
    assert encoder.verify("secret123", first)
    assert encoder.verify("secret123", second)


def test_older_schemes_still_verify(encoder):
    legacy = PasswordEncoder(["pbkdf2_sha256"]).encode("secret123")
    upgraded = PasswordEncoder(["bcrypt", "pbkdf2_sha256"])

    assert upgraded.verify("secret123", legacy)
    assert upgraded.encode("secret123").startswith("$2b$")


def test_password_byte_limit_follows_default_scheme(encoder):
    assert PasswordEncoder().max_password_bytes == 72
    assert PasswordEncoder(["bcrypt", "pbkdf2_sha256"]).max_password_bytes == 72
    assert encoder.max_password_bytes is None
