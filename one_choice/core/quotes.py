from __future__ import annotations

from .rng import DeterministicRNG

QUOTES: dict[str, dict[str, tuple[str, ...]]] = {
    "en": {
        "menu": (
            "Every decision has a price.",
            "There is no right choice.",
            "All paths lead to collapse.",
            "You have already lost.",
            "It doesn't matter what you choose.",
            "The end is inevitable.",
            "Your decisions change nothing.",
            "Choice is an illusion.",
            "It will hurt anyway.",
            "There is no way out.",
        ),
        "preGame": (
            "Good decisions do not exist.",
            "You already know how this ends.",
            "Begin. Again.",
            "Every choice brings the end closer.",
            "Don't try to win.",
        ),
        "gameOver": (
            "This was inevitable.",
            "You knew this would happen.",
            "Again.",
            "Nothing has changed.",
            "Try again. Or don't.",
        ),
        "restart": (
            "This time you will choose differently.",
            "Try again.",
            "Nothing will change.",
            "You already know the outcome.",
            "Continue.",
        ),
    },
    "ru": {
        "menu": (
            "Каждое решение имеет цену.",
            "Нет правильного выбора.",
            "Все пути ведут к коллапсу.",
            "Вы уже проиграли.",
            "Неважно, что вы выберете.",
            "Конец неизбежен.",
            "Ваши решения ничего не меняют.",
            "Выбор — это иллюзия.",
            "Все равно будет больно.",
            "Нет выхода.",
        ),
        "preGame": (
            "Хороших решений не существует.",
            "Вы уже знаете, чем это закончится.",
            "Начните. Снова.",
            "Каждый выбор приближает конец.",
            "Не пытайтесь выиграть.",
        ),
        "gameOver": (
            "Это было неизбежно.",
            "Вы знали, что это произойдет.",
            "Снова.",
            "Ничего не изменилось.",
            "Попробуйте еще раз. Или не пытайтесь.",
        ),
        "restart": (
            "На этот раз вы выберете иначе.",
            "Попробуйте снова.",
            "Ничего не изменится.",
            "Вы уже знаете исход.",
            "Продолжайте.",
        ),
    },
}


class QuoteBook:
    """Flavour lines that do not repeat until a category is exhausted."""

    def __init__(self, rng: DeterministicRNG, language: str = "en") -> None:
        self.rng = rng
        self.language = language
        self.used: set[int] = set()

    def get_quote(self, category: str) -> str:
        quotes = QUOTES.get(self.language, {}).get(category, ())
        if not quotes:
            return ""
        if len(self.used) >= len(quotes):
            self.used.clear()
        available = [index for index in range(len(quotes)) if index not in self.used]
        if not available:
            available = list(range(len(quotes)))
            self.used.clear()
        index = self.rng.pick(available)
        self.used.add(index)
        return quotes[index]

    def reset(self) -> None:
        self.used.clear()

    def set_language(self, language: str) -> None:
        self.language = language
        self.reset()
