"""Game outcome and payout rules.

Every game draws its result from keccak(serverSeed || userSeed) reduced
modulo the game's range, then pays out with the house edge taken from the
total won. All amounts are integer gwei, divisions floor like the
contracts' uint arithmetic.

Adding a game means adding one Game subclass to GAMES.
"""

from abc import ABC, abstractmethod

from crypto import combined_seed
from protocol import (
    GameType, HOUSE_EDGE, HOUSE_EDGE_DIVISOR,
    DICE_RANGE, CHOOSE_FROM_12_RANGE, FLIP_A_COIN_RANGE,
)


class UnknownGameType(ValueError):
    pass


class InvalidBetNumber(ValueError):
    pass


def random_number(server_seed: str, user_seed: str) -> int:
    """uint256 drawn from both seeds; neither party alone controls it."""
    return int.from_bytes(combined_seed(server_seed, user_seed), "big")


def profit_from_total_won(total_won: int, value: int) -> int:
    """Winner's profit: total won minus house edge minus the stake."""
    house_edge = total_won * HOUSE_EDGE // HOUSE_EDGE_DIVISOR
    return total_won - house_edge - value


class Game(ABC):
    """Pure outcome/payout strategy for one game type."""

    game_type: int
    range: int

    @abstractmethod
    def check_num(self, num: int) -> None:
        """Raise InvalidBetNumber if *num* is not a legal bet for this game."""
        ...

    @abstractmethod
    def won(self, num: int, result: int) -> bool:
        ...

    @abstractmethod
    def total_won(self, num: int, value: int) -> int:
        ...

    def result_number(self, server_seed: str, user_seed: str, num: int) -> int:
        return random_number(server_seed, user_seed) % self.range

    def profit(self, num: int, value: int, result: int) -> int:
        if self.won(num, result):
            return profit_from_total_won(self.total_won(num, value), value)
        return -value


class DiceLower(Game):
    """Win if the roll is below num."""
    game_type = GameType.DICE_LOWER
    range = DICE_RANGE

    def check_num(self, num):
        if not 0 < num < DICE_RANGE:
            raise InvalidBetNumber(f"dice lower number must be in 1..{DICE_RANGE - 1}, got {num}")

    def won(self, num, result):
        return result < num

    def total_won(self, num, value):
        return value * DICE_RANGE // num


class DiceHigher(Game):
    """Win if the roll is above num."""
    game_type = GameType.DICE_HIGHER
    range = DICE_RANGE

    def check_num(self, num):
        if not 0 <= num < DICE_RANGE - 1:
            raise InvalidBetNumber(f"dice higher number must be in 0..{DICE_RANGE - 2}, got {num}")

    def won(self, num, result):
        return result > num

    def total_won(self, num, value):
        return value * DICE_RANGE // (DICE_RANGE - num - 1)


class ChooseFrom12(Game):
    """num is a 12-bit mask of picked fields; win if the drawn field is picked."""
    game_type = GameType.CHOOSE_FROM_12
    range = CHOOSE_FROM_12_RANGE

    def check_num(self, num):
        if not 0 < num < (1 << CHOOSE_FROM_12_RANGE) - 1:
            raise InvalidBetNumber(f"choose from 12 needs 1..11 picked fields, got mask {num}")

    def won(self, num, result):
        return bool((num >> result) & 1)

    def total_won(self, num, value):
        return value * CHOOSE_FROM_12_RANGE // bin(num).count("1")


class FlipACoin(Game):
    """num is the called side (0 or 1)."""
    game_type = GameType.FLIP_A_COIN
    range = FLIP_A_COIN_RANGE

    def check_num(self, num):
        if num not in (0, 1):
            raise InvalidBetNumber(f"flip a coin number must be 0 or 1, got {num}")

    def won(self, num, result):
        return result == num

    def total_won(self, num, value):
        return value * FLIP_A_COIN_RANGE


GAMES = {game.game_type: game for game in (DiceLower(), DiceHigher(), ChooseFrom12(), FlipACoin())}


class OutcomeEngine:
    """Recomputes result numbers and balances from revealed seeds."""

    def __init__(self, games: dict | None = None):
        self.games = dict(GAMES if games is None else games)

    def game(self, game_type: int) -> Game:
        try:
            return self.games[game_type]
        except KeyError:
            raise UnknownGameType(f"Unknown game type: {game_type}") from None

    def result_number(self, game_type: int, server_seed: str, user_seed: str, num: int) -> int:
        game = self.game(game_type)
        game.check_num(num)
        return game.result_number(server_seed, user_seed, num)

    def new_balance(self, game_type: int, num: int, value: int,
                    server_seed: str, user_seed: str, prior_balance: int) -> int:
        game = self.game(game_type)
        result = self.result_number(game_type, server_seed, user_seed, num)
        return prior_balance + game.profit(num, value, result)


_default_engine = OutcomeEngine()


def result_number(game_type: int, server_seed: str, user_seed: str, num: int) -> int:
    return _default_engine.result_number(game_type, server_seed, user_seed, num)


def new_balance(game_type: int, num: int, value: int, server_seed: str, user_seed: str,
                prior_balance: int) -> int:
    return _default_engine.new_balance(game_type, num, value, server_seed, user_seed, prior_balance)
