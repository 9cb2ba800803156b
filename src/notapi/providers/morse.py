"""International Morse code encoder/decoder."""

from typing import Dict

DOT = "."
DASH = "-"
LETTER_SEPARATOR = " "
WORD_SEPARATOR = "/"
INVALID = "#"

CODES: Dict[str, str] = {
    "A": ".-", "B": "-...", "C": "-.-.", "D": "-..", "E": ".", "F": "..-.",
    "G": "--.", "H": "....", "I": "..", "J": ".---", "K": "-.-", "L": ".-..",
    "M": "--", "N": "-.", "O": "---", "P": ".--.", "Q": "--.-", "R": ".-.",
    "S": "...", "T": "-", "U": "..-", "V": "...-", "W": ".--", "X": "-..-",
    "Y": "-.--", "Z": "--..",
    "0": "-----", "1": ".----", "2": "..---", "3": "...--", "4": "....-",
    "5": ".....", "6": "-....", "7": "--...", "8": "---..", "9": "----.",
    ".": ".-.-.-", ",": "--..--", "?": "..--..", "'": ".----.", "!": "-.-.--",
    "/": "-..-.", "(": "-.--.", ")": "-.--.-", "&": ".-...", ":": "---...",
    ";": "-.-.-.", "=": "-...-", "+": ".-.-.", "-": "-....-", "_": "..--.-",
    '"': ".-..-.", "$": "...-..-", "@": ".--.-.",
}

LETTERS: Dict[str, str] = {code: char for char, code in CODES.items()}


def encode(text: str) -> str:
    """
    Encode text to Morse code.

    Letters are case-insensitive and separated by a space, words by ``/``.
    Characters without a Morse representation become ``#``.

    >>> encode("sos")
    '... --- ...'
    """
    words = []
    for word in text.upper().split():
        words.append(LETTER_SEPARATOR.join(CODES.get(char, INVALID) for char in word))
    return f" {WORD_SEPARATOR} ".join(words)


def decode(morse: str) -> str:
    """
    Decode Morse code to uppercase text.

    Unknown codes become ``#``.

    >>> decode("... --- ...")
    'SOS'
    """
    words = []
    for word in morse.strip().split(WORD_SEPARATOR):
        letters = word.split()
        if letters:
            words.append("".join(LETTERS.get(code, INVALID) for code in letters))
    return " ".join(words)
