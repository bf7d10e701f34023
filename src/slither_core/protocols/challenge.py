# src/slither_core/protocols/challenge.py
"""
Pre-init Challenge 解码 (ChallengeCodec)

服务器在 '6' 包中下发一段混淆过的字节序列，客户端必须将其变换为
24 字节的答案原样回传，否则会话不会被解锁。
"""

import logging

from ..exceptions import MalformedChallengeError
from .constants import ChallengeConst

logger = logging.getLogger(__name__)


def _fold(value: int) -> int:
    """将大写区间折叠到小写区间，>= 97 的值原样通过。"""
    if value <= ChallengeConst.FOLD_LIMIT:
        value += ChallengeConst.FOLD_SHIFT
    return value


def decode_challenge(challenge: bytes) -> bytes:
    """计算 Challenge 的 24 字节答案。

    算法逻辑 (第 i 轮, i = 0..23):
    1. 读取 b1 = challenge[17 + 2i], b2 = challenge[18 + 2i]，并做小写折叠。
    2. v1 = (b1 - 98 - 34i) mod 26, v2 = (b2 - 115 - 34i) mod 26。
    3. merged = (v1 << 4) | v2；merged >= 97 时以 'a' 为基，否则以 'A' 为基。
    4. 首轮用字母序号初始化累加器，之后每轮累加 3 + 字母序号。

    累加器使每个输出字节依赖之前所有轮次，必须严格顺序计算。

    Args:
        challenge: '6' 包中从偏移 3 开始的原始载荷。

    Returns:
        bytes: 24 字节的答案，每个字节都是 ASCII 字母。

    Raises:
        MalformedChallengeError: 载荷不足 65 字节。
    """
    if len(challenge) < ChallengeConst.MIN_PAYLOAD_LEN:
        raise MalformedChallengeError(len(challenge), ChallengeConst.MIN_PAYLOAD_LEN)

    answer = bytearray(ChallengeConst.ANSWER_LEN)
    acc = 0

    for i in range(ChallengeConst.ANSWER_LEN):
        b1 = _fold(challenge[ChallengeConst.FIRST_OFFSET + 2 * i])
        b2 = _fold(challenge[ChallengeConst.SECOND_OFFSET + 2 * i])

        round_bias = ChallengeConst.ROUND_BIAS * i
        # Python 的 % 总是返回 [0, 26) 内的非负余数
        v1 = (b1 - ChallengeConst.FIRST_BIAS - round_bias) % ChallengeConst.ALPHABET
        v2 = (b2 - ChallengeConst.SECOND_BIAS - round_bias) % ChallengeConst.ALPHABET

        merged = (v1 << 4) | v2
        if merged >= ChallengeConst.LOWER_BASE:
            base = ChallengeConst.LOWER_BASE
        else:
            base = ChallengeConst.UPPER_BASE
        letter_index = merged - base

        if i == 0:
            acc = ChallengeConst.ACC_SEED + letter_index

        answer[i] = (letter_index + acc) % ChallengeConst.ALPHABET + base
        acc += ChallengeConst.ACC_STEP + letter_index

    logger.debug("challenge_answer: %s", answer.decode("ascii"))
    return bytes(answer)
