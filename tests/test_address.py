from __future__ import annotations

import pytest
from hypothesis import given, strategies as st

from sponsored_wallet.address import (HRP_PREFIX, encode_all, encode_bech32m,
                                      encode_hex, encode_short, hrp_for,
                                      resolve)
from sponsored_wallet.errors import MalformedAddress
from sponsored_wallet.utils.bech32 import Bech32Error, decode_bytes, encode_bytes

KEY = bytes.fromhex("11" * 32)


def test_known_encodings():
    assert encode_short(KEY) == "cpk:" + "ERER" * 10 + "ERE"
    assert encode_hex(KEY) == "11" * 32
    assert encode_hex(KEY, prefix=True) == "0x" + "11" * 32
    b32 = encode_bech32m(KEY)
    assert b32.startswith(HRP_PREFIX + "undeployed1")
    assert b32 == b32.lower()


def test_hrp_follows_network():
    assert hrp_for("TestNet ") == "mn_shield-cpk_testnet"
    assert encode_bech32m(KEY, "testnet").startswith("mn_shield-cpk_testnet1")


@given(st.binary(min_size=32, max_size=32))
def test_every_form_resolves_to_the_key(key):
    for form in encode_all(key, "undeployed").values():
        assert resolve(form, "undeployed") == key
    assert resolve("0x" + key.hex()) == key


def test_uppercase_forms_accepted():
    assert resolve(encode_bech32m(KEY).upper()) == KEY
    assert resolve("0X" + "11" * 32) == KEY
    assert resolve("AB" * 32) == bytes.fromhex("ab" * 32)


def test_whitespace_is_trimmed():
    assert resolve("  " + encode_short(KEY) + "\n") == KEY


@pytest.mark.parametrize(
    "text",
    [
        "",
        "   ",
        "hello",
        "11" * 31,  # 31 bytes
        "1" * 63,  # odd hex
        "11" * 33,
        "cpk:" + "A" * 42,
        "cpk:" + "A" * 44,
        "cpk:" + "A" * 42 + "=",
        "cpk:" + "A" * 41 + "+/",  # standard alphabet, not url-safe
        "cpk:" + "A" * 42 + "B",  # non-zero spare bits
    ],
)
def test_malformed(text):
    with pytest.raises(MalformedAddress) as ei:
        resolve(text)
    assert ei.value.code == "malformed_address"
    assert ei.value.status_code == 400


def test_bech32m_wrong_network():
    other = encode_bech32m(KEY, "mainnet")
    with pytest.raises(MalformedAddress) as ei:
        resolve(other, "undeployed")
    assert "HRP" in ei.value.details["reason"]
    assert resolve(other, "mainnet") == KEY


def test_bech32m_bad_checksum():
    good = encode_bech32m(KEY)
    last = "q" if good[-1] != "q" else "p"
    with pytest.raises(MalformedAddress):
        resolve(good[:-1] + last)


def test_bech32m_mixed_case():
    good = encode_bech32m(KEY)
    sep = good.rfind("1")
    i = next(j for j in range(sep + 1, len(good)) if good[j].isalpha())
    mixed = good[:i] + good[i].upper() + good[i + 1 :]
    with pytest.raises(MalformedAddress):
        resolve(mixed)


def test_bech32m_wrong_length_payload():
    short = encode_bytes(hrp_for("undeployed"), bytes(31))
    with pytest.raises(MalformedAddress):
        resolve(short)


def test_decode_bytes_checks_expected_hrp():
    s = encode_bech32m(KEY)
    assert decode_bytes(s, expected_hrp=hrp_for("undeployed"))[1] == KEY
    with pytest.raises(Bech32Error):
        decode_bytes(s, expected_hrp="mn_shield-cpk_mainnet")


def test_non_string_rejected():
    with pytest.raises(MalformedAddress):
        resolve(KEY)  # type: ignore[arg-type]
