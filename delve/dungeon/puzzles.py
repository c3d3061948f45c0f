"""Room puzzles.

Three puzzle families are generated: small sums (range widened by the
difficulty modifier), a rhyming colour guess and an odd/even guess.
"""
from __future__ import annotations

import random
from dataclasses import dataclass

COLOR_RHYMES = {
    'red': 'bed',
    'blue': 'shoe',
    'green': 'bean',
    'yellow': 'mellow',
}


@dataclass
class Puzzle:
    question: str
    answer: str
    description: str
    solved: bool = False

    def check_answer(self, candidate) -> bool:
        if candidate is None:
            return False
        return str(candidate).strip().lower() == self.answer.strip().lower()

    def mark_solved(self) -> None:
        self.solved = True


def _math_puzzle(rng: random.Random, adjustment: int) -> Puzzle:
    a = rng.randint(1, 10 + adjustment)
    b = rng.randint(1, 10 + adjustment)
    return Puzzle(question=f"What is {a} + {b}?", answer=str(a + b), description="A math puzzle")


def _color_puzzle(rng: random.Random, adjustment: int) -> Puzzle:
    color = rng.choice(sorted(COLOR_RHYMES))
    return Puzzle(
        question=f"What color am I thinking of? It rhymes with: {COLOR_RHYMES[color]}",
        answer=color,
        description="A color-guessing puzzle",
    )


def _parity_puzzle(rng: random.Random, adjustment: int) -> Puzzle:
    number = rng.randint(1, 100)
    return Puzzle(
        question="I'm thinking of a number between 1 and 100. Is it odd or even?",
        answer='even' if number % 2 == 0 else 'odd',
        description="An odd-or-even guessing puzzle",
    )


_GENERATORS = (_math_puzzle, _color_puzzle, _parity_puzzle)


def generate_puzzle(rng: random.Random, modifier: float = 1.0) -> Puzzle:
    adjustment = int(10 * modifier)
    return rng.choice(_GENERATORS)(rng, adjustment)


__all__ = ["Puzzle", "generate_puzzle", "COLOR_RHYMES"]
