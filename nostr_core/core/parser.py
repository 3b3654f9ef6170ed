"""
Text tokenizer for note content.

Splits plain text into text, URL and hashtag tokens so clients can render
links and tags. Nothing is dropped: concatenating the token values (with
``#`` restored on hashtags) gives back the input.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List


class TokenType(Enum):
    TEXT = "text"
    URL = "url"
    HASHTAG = "hashtag"


@dataclass(frozen=True)
class Token:
    token_type: TokenType
    value: str

    def to_dict(self) -> Dict[str, str]:
        return {"token_type": self.token_type.value, "value": self.value}

    def to_text(self) -> str:
        """Source text this token came from."""
        if self.token_type is TokenType.HASHTAG:
            return "#" + self.value
        return self.value


_TOKEN_RE = re.compile(
    r"(?P<url>https?://[^\s<>\"]+)"
    r"|(?<![\w#])#(?P<hashtag>\w+)"
)
# sentence punctuation that ends a URL rather than belonging to it
_URL_TRAILING = ".,;:!?)]}'\""


def parse_text(text: str) -> List[Token]:
    """
    Tokenize ``text``.

    Returns:
        List[Token]: In source order, adjacent text merged
    """
    tokens: List[Token] = []
    pending = ""
    position = 0

    for match in _TOKEN_RE.finditer(text):
        pending += text[position:match.start()]
        position = match.end()

        url = match.group("url")
        if url is not None:
            stripped = url.rstrip(_URL_TRAILING)
            if not stripped.split("://", 1)[1]:
                # nothing left but the scheme
                pending += url
                continue
            position = match.start() + len(stripped)
            token = Token(TokenType.URL, stripped)
        else:
            token = Token(TokenType.HASHTAG, match.group("hashtag"))

        if pending:
            tokens.append(Token(TokenType.TEXT, pending))
            pending = ""
        tokens.append(token)

    pending += text[position:]
    if pending:
        tokens.append(Token(TokenType.TEXT, pending))
    return tokens
