"""Two-player hangman over UDP: the server keeps the secret word and the lives."""

from __future__ import annotations

import random
import socket
import sys
from dataclasses import dataclass

WORDS = ("ciao", "fest", "casa", "balcone", "bottiglia", "albero", "rum", "computer")
MAX_BUFFER_SIZE = 1024
MAX_NAME_SIZE = 32
PLAYERS = 2
LIVES = 3
HIDDEN = "_"


@dataclass
class Player:
    """A registered player, their remaining lives and where to reach them."""

    name: str
    lives: int = LIVES
    address: tuple | None = None


class Hangman:
    """Game state shared by two players guessing the same word."""

    def __init__(self, word: str, names, lives: int = LIVES):
        names = list(names)
        if not word:
            raise ValueError("the word to guess must not be empty")
        if len(names) != PLAYERS:
            raise ValueError(f"exactly {PLAYERS} players are needed, got {len(names)}")
        if lives < 1:
            raise ValueError(f"lives must be positive, got {lives}")
        self.word = word
        self.state = HIDDEN * len(word)
        self.players = [Player(name, lives) for name in names]

    @property
    def solved(self) -> bool:
        """Whether every letter has been revealed."""
        return HIDDEN not in self.state

    @property
    def finished(self) -> bool:
        """Whether the word is solved or nobody has lives left."""
        return self.solved or all(player.lives == 0 for player in self.players)

    def _lives_text(self) -> str:
        first, second = self.players
        return f"Vite {first.name}: {first.lives} - {second.name}: {second.lives}"

    def state_message(self) -> str:
        """The message telling the current player how the game stands."""
        return f"Parola corrente: {self.state} | {self._lives_text()}"

    def guess(self, player: int, attempt: str) -> bool:
        """Apply ``player``'s attempt, a single letter or the whole word.

        Returns whether the attempt hit; a miss costs the player a life.
        Raises ValueError when the game is over, or the player is unknown or out of lives.
        """
        if self.finished:
            raise ValueError("la partita è finita")
        if player not in range(len(self.players)):
            raise ValueError(f"invalid player: {player}")
        current = self.players[player]
        if current.lives == 0:
            raise ValueError(f"{current.name} non ha più vite")
        hit = False
        if len(attempt) == 1:
            hit = attempt in self.word
            self.state = "".join(
                letter if letter == attempt else shown
                for letter, shown in zip(self.word, self.state)
            )
        elif attempt == self.word:
            self.state = self.word
            hit = True
        if not hit:
            current.lives -= 1
        return hit

    def win_message(self) -> str:
        """The message sent to the player who solved the word."""
        return f"Hai vinto, partita finita.\nLa parola era: {self.word} | {self._lives_text()}"

    def loss_message(self) -> str:
        """The message sent to a player who lost."""
        return f"Game over, partita finita.\nUltimo stato: {self.state} | {self._lives_text()}"


def choose_word(rng=None) -> str:
    """Pick the secret word at random."""
    rng = random.Random() if rng is None else rng
    return rng.choice(WORDS)


def _cstring(data: bytes) -> str:
    return data.split(b"\0", 1)[0].decode("utf-8", errors="replace")


def _send(sock: socket.socket, text: str, address, index: int) -> None:
    print(f"Sto inviando al player {index} la stringa:\n{text}")
    sock.sendto(text.encode("utf-8")[: MAX_BUFFER_SIZE - 1] + b"\0", address)


def serve(port: int) -> None:
    """Register two players, then run one game until it ends."""
    word = choose_word()
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        sock.bind(("0.0.0.0", port))
        registered = []
        for index in range(PLAYERS):
            print(f"Attesa giocatore {index}")
            data, address = sock.recvfrom(MAX_NAME_SIZE)
            name = _cstring(data)
            registered.append((name, address))
            print(
                f"Registrazione giocatore {name}, porta {address[1]} e ip {address[0]} "
                "avvenuta con successo!"
            )
        game = Hangman(word, [name for name, _ in registered])
        print(f"Parola da indovinare: '{game.word}' -> '{game.state}'")
        for player, (_, address) in zip(game.players, registered):
            player.address = address
        current = 0
        while not game.finished:
            player = game.players[current]
            if player.lives == 0:
                current = 1 - current
                continue
            _send(sock, game.state_message(), player.address, current)
            data, _ = sock.recvfrom(MAX_BUFFER_SIZE)
            attempt = _cstring(data)
            print(f"Il client ha inviato come tentativo '{attempt}'")
            game.guess(current, attempt)
            if game.solved:
                _send(sock, game.win_message(), player.address, current)
                other = game.players[1 - current]
                _send(sock, game.loss_message(), other.address, 1 - current)
                break
            if player.lives == 0:
                _send(sock, game.loss_message(), player.address, current)
            current = 1 - current


def _port(text: str) -> int:
    try:
        return int(text)
    except ValueError:
        return 0


def main(argv=None) -> int:
    """Command entry point: ``hangman-server <port>``."""
    args = sys.argv[1:] if argv is None else list(argv)
    if not args or _port(args[0]) == 0:
        print("use: hangman-server <port server>", file=sys.stderr)
        return 1
    try:
        serve(_port(args[0]))
    except KeyboardInterrupt:
        return 0
    except OSError as exc:
        print(f"bind: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())