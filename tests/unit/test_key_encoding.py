import unicodedata

import pytest

from filedb_lib.storage.file_backend import MAX_STEM_BYTES, decode_key, encode_key, is_hashed_stem


def test_plain_keys_are_kept_as_is():
    assert encode_key('mykey1') == 'mykey1'
    assert encode_key('cineeu-key') == 'cineeu-key'


def test_printable_non_ascii_is_kept_as_is():
    assert encode_key('é' * 50) == 'é' * 50
    assert encode_key('ключ') == 'ключ'


@pytest.mark.parametrize('key', [
    'a/b', 'a_b', '..', '.hidden', 'a\\b', '100%', 'über', 'line\nbreak',
    ' spaced ', 'MixedCase', 'ÉCOLE', '\u00e9', 'e\u0301', 'Straße', '#tag', 'a:b?c*',
])
def test_keys_roundtrip_to_filenames(key):
    stem = encode_key(key)
    assert '/' not in stem and '\\' not in stem
    assert not stem.startswith('.')
    assert not is_hashed_stem(stem)
    assert decode_key(stem) == key


def test_similar_keys_do_not_collide():
    keys = ['a/b', 'a_b', 'a%2Fb', 'a\\b']
    assert len({encode_key(k) for k in keys}) == len(keys)


@pytest.mark.parametrize('upper, lower', [('A', 'a'), ('MyKey', 'mykey'), ('É', 'é'), ('ß', 'ss'), ('\u212a', 'k')])
def test_case_variants_stay_distinct_when_folded(upper, lower):
    assert encode_key(upper).lower() != encode_key(lower).lower()


def test_normalization_variants_stay_distinct():
    composed = encode_key('\u00e9')
    decomposed = encode_key('e\u0301')
    assert unicodedata.normalize('NFD', composed) != unicodedata.normalize('NFD', decomposed)
    assert encode_key('\u00c5') != encode_key('\u212b')


def test_long_keys_use_a_fixed_length_digest():
    for key in ['a' * 300, 'é' * 150, '/' * 100]:
        stem = encode_key(key)
        assert is_hashed_stem(stem)
        assert len(stem.encode('utf-8')) <= MAX_STEM_BYTES
    assert encode_key('a' * 300) != encode_key('a' * 301)
    with pytest.raises(ValueError):
        decode_key(encode_key('a' * 300))


def test_stem_at_the_limit_is_not_hashed():
    key = 'a' * MAX_STEM_BYTES
    assert encode_key(key) == key
