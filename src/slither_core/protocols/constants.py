# src/slither_core/protocols/constants.py
"""
Slither 协议层 - 常量定义

本模块定义了所有协议相关的操作码、偏移量和算法魔法数字。
采用命名空间 (Class Namespace) 组织，不使用扁平全局变量。
"""

from enum import Enum

# =========================================================================
# 1. 出站操作码 (Client -> Server)
# =========================================================================


class PacketCode:
    """出站数据包的单字节 Tag"""

    START_LOGIN = b"\x63"  # 'c'
    SET_USERNAME_AND_SKIN = 0x73  # 's'
    KEEP_ALIVE = b"\xfb"  # 251
    BOOST_ON = b"\xfd"  # 253
    BOOST_OFF = b"\xfe"  # 254


# =========================================================================
# 2. 入站帧结构 (Server -> Client)
# =========================================================================

# 前两个字节是不透明的帧头，第 3 个字节是 Tag
TAG_OFFSET = 2
PAYLOAD_OFFSET = 3


class InboundTag(Enum):
    """核心层消费的入站 Tag。

    只有前三个成员由会话状态机处理，其余全部归为 FORWARD，
    原样转交给外部的游戏逻辑处理器。
    """

    PRE_INIT_CHALLENGE = "6"
    SPAWN_ACKNOWLEDGED = "a"
    KEEP_ALIVE_ACK = "p"
    FORWARD = None

    @classmethod
    def classify(cls, tag: str) -> "InboundTag":
        for member in (
            cls.PRE_INIT_CHALLENGE,
            cls.SPAWN_ACKNOWLEDGED,
            cls.KEEP_ALIVE_ACK,
        ):
            if member.value == tag:
                return member
        return cls.FORWARD


class GameplayTag(str, Enum):
    """已知的游戏逻辑 Tag (核心层不解析其载荷，仅用于日志与处理器注册)。"""

    # 蛇的旋转
    SNAKE_ROTATION_CCW_1 = "e"
    SNAKE_ROTATION_CCW_2 = "E"
    SNAKE_ROTATION_CCW_3 = "3"
    SNAKE_ROTATION_CW_1 = "4"
    SNAKE_ROTATION_CW_2 = "5"

    # 蛇的移动与身体
    MOVE_SNAKE_1 = "g"
    MOVE_SNAKE_2 = "G"
    INCREASE_SNAKE_1 = "n"
    INCREASE_SNAKE_2 = "N"
    UPDATE_SNAKE_FULLNESS = "h"
    REMOVE_SNAKE_PART = "r"

    # 实体管理
    ADD_OR_REMOVE_SNAKE = "s"
    ADD_FOOD_1 = "F"
    ADD_FOOD_2 = "b"
    ADD_FOOD_3 = "f"
    FOOD_EATEN = "c"
    UPDATE_PREY = "j"
    ADD_OR_REMOVE_PREY = "y"

    # 地图与排行
    LEADERBOARD = "l"
    ADD_SECTOR = "W"
    REMOVE_SECTOR = "w"
    GLOBAL_HIGHSCORE = "m"
    UPDATE_MINIMAP = "u"

    # 玩家状态
    DEAD_OR_DISCONNECT = "v"
    VERIFY_CODE_RESPONSE = "o"
    KILL = "k"

    @classmethod
    def describe(cls, tag: str) -> str:
        """返回 Tag 的可读名称，未知 Tag 返回 UNKNOWN('x')。"""
        try:
            return cls(tag).name
        except ValueError:
            return f"UNKNOWN({tag!r})"


# =========================================================================
# 3. Challenge 阶段常量
# =========================================================================


class ChallengeConst:
    MIN_PAYLOAD_LEN = 65
    ANSWER_LEN = 24

    # 第 i 轮读取 payload[FIRST_OFFSET + 2i] 与 payload[SECOND_OFFSET + 2i]
    FIRST_OFFSET = 17
    SECOND_OFFSET = 18

    # 小写折叠: b <= FOLD_LIMIT 时 b += FOLD_SHIFT
    FOLD_LIMIT = 96
    FOLD_SHIFT = 32

    FIRST_BIAS = 98
    SECOND_BIAS = 115
    ROUND_BIAS = 34
    ALPHABET = 26

    LOWER_BASE = 97  # 'a'
    UPPER_BASE = 65  # 'A'

    ACC_SEED = 2
    ACC_STEP = 3


# =========================================================================
# 4. 服务器目录 (Directory) 常量
# =========================================================================


class DirectoryConst:
    CHAR_BASE = 97  # 'a'
    POSITION_SHIFT = 7
    ALPHABET = 26
    NIBBLE = 16

    RECORD_SIZE = 11
    HOST_LEN = 4
    PORT_LEN = 3
    AUTH_CODE_LEN = 3


# =========================================================================
# 5. 移动
# =========================================================================


class MoveConst:
    FULL_TURN = 360.0
    MAX_VALUE = 250
