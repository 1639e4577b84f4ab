# mIRC colour codes
COLOR = "\x03"
RESET = "\x0f"

WHITE = "00"
BLACK = "01"
BLUE = "02"
GREEN = "03"
RED = "04"
BROWN = "05"
PURPLE = "06"
ORANGE = "07"
YELLOW = "08"
LIGHT_GREEN = "09"
TEAL = "10"
LIGHT_CYAN = "11"
LIGHT_BLUE = "12"
PINK = "13"
GREY = "14"
LIGHT_GREY = "15"


def colorize(text: str, foreground: str) -> str:
    return f"{COLOR}{foreground}{text}{RESET}"


def red(text: str) -> str:
    return colorize(text, RED)


def green(text: str) -> str:
    return colorize(text, GREEN)


def grey(text: str) -> str:
    return colorize(text, GREY)


def light_blue(text: str) -> str:
    return colorize(text, LIGHT_BLUE)


def strip_formatting(text: str) -> str:
    """Drop colour and reset codes, e.g. before logging a coloured line."""
    out = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == COLOR:
            i += 1
            digits = 0
            while i < len(text) and text[i].isdigit() and digits < 2:
                i += 1
                digits += 1
            continue
        if ch != RESET:
            out.append(ch)
        i += 1
    return "".join(out)
