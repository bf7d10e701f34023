# tests/test_challenge.py
"""
测试 Pre-init Challenge 解码算法。
重点验证:
1. 黄金向量 (逐字节固定的答案)。
2. 输出总是 24 个 ASCII 字母，且函数无隐藏状态。
3. 大小写折叠与长度不足时的硬失败。
"""

import random

import pytest
from conftest import make_challenge, pairs_for

from slither_core.exceptions import MalformedChallengeError
from slither_core.protocols.challenge import decode_challenge


def test_golden_vector_all_zero_pairs():
    """
    每一轮 v1 = v2 = 0 时，merged = 0 落在大写区间，
    累加器种子为 2 - 65，首字节为 'C'，之后以 13 为周期循环。
    """
    challenge = make_challenge(pairs_for(0, 0))

    assert decode_challenge(challenge) == b"CSIYOEUKAQGWMCSIYOEUKAQG"


def test_golden_vector_lower_case_band():
    """每一轮 merged = 97 ('a') 时，字母序号为 0，输出按 2 + 3i 逐步偏移。"""
    challenge = make_challenge(pairs_for(6, 1))

    assert decode_challenge(challenge) == b"cfiloruxadgjmpsvybehknqt"


def test_output_is_always_24_letters():
    rng = random.Random(1968)
    for _ in range(200):
        length = rng.randint(65, 200)
        challenge = bytes(rng.randrange(256) for _ in range(length))

        answer = decode_challenge(challenge)

        assert len(answer) == 24
        assert all(chr(b).isascii() and chr(b).isalpha() for b in answer)


def test_decode_is_deterministic():
    rng = random.Random(42)
    challenge = bytes(rng.randrange(256) for _ in range(80))

    assert decode_challenge(challenge) == decode_challenge(challenge)


def test_upper_case_input_folds_to_lower_case():
    """大写字节 (<= 96) 会先加 32，因此与对应小写字节给出相同答案。"""
    lower = make_challenge(pairs_for(3, 9))
    upper = bytes(b - 32 if 97 <= b <= 122 else b for b in lower)

    assert upper != lower
    assert decode_challenge(upper) == decode_challenge(lower)


def test_only_bytes_17_to_64_matter():
    challenge = bytearray(make_challenge(pairs_for(2, 5)))
    expected = decode_challenge(bytes(challenge))

    challenge[:17] = b"\xff" * 17
    challenge += b"trailing bytes are ignored"

    assert decode_challenge(bytes(challenge)) == expected


def test_accumulator_chains_rounds():
    """修改第 0 轮会改变后续所有字节，验证累加器的顺序依赖。"""
    pairs = pairs_for(0, 0)
    original = decode_challenge(make_challenge(pairs))

    pairs[0] = pairs_for(6, 2)[0]
    changed = decode_challenge(make_challenge(pairs))

    assert all(a != b for a, b in zip(original[1:], changed[1:]))


@pytest.mark.parametrize("length", [0, 3, 64])
def test_short_challenge_is_rejected(length):
    with pytest.raises(MalformedChallengeError) as e:
        decode_challenge(b"a" * length)

    assert e.value.length == length
    assert e.value.required == 65
