from storefront.passwords import hash_password, verify_password


def test_hash_is_digest_dot_salt():
    stored = hash_password("hunter22")

    digest, salt = stored.split(".")
    assert len(digest) == 128  # 64-byte key, hex encoded
    assert len(salt) == 32
    int(digest, 16)
    int(salt, 16)


def test_hashes_are_salted():
    assert hash_password("same") != hash_password("same")


def test_verify_password_against_hash():
    stored = hash_password("hunter22")

    assert verify_password("hunter22", stored)
    assert not verify_password("hunter23", stored)


def test_legacy_plaintext_values_still_verify():
    assert verify_password("oldpass", "oldpass")
    assert not verify_password("oldpass", "other")


def test_malformed_digest_does_not_verify():
    assert not verify_password("anything", "not-hex.abcdef")
