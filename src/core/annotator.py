"""Text annotation engine (core domain).

Annotation runs in two phases over an entity-decoded body:

1) Recognition: recognizers run in priority order. Each one scans only the
   text that no earlier recognizer has claimed, and every match it finds is
   locked in as a placeholder.
2) Materialization: placeholders are expanded into segments and the
   remaining text becomes plain-text segments.

Placeholders are objects rather than marker strings, so no user text can be
mistaken for one.
"""

from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple, Union

from core.entities import decode
from core.models import PlainText, QuoteReference, Segment
from core.recognizers import DEFAULT_RECOGNIZERS, Placeholder, Recognizer

_Piece = Union[str, Placeholder]


class Annotator:
    """Turns raw post bodies into ordered segment sequences."""

    def __init__(self, recognizers: Iterable[Recognizer] = DEFAULT_RECOGNIZERS) -> None:
        self._recognizers = list(recognizers)
        self._by_name = {recognizer.name: recognizer for recognizer in self._recognizers}

    def annotate(self, raw_body: str) -> Tuple[Segment, ...]:
        """Annotate a raw body. Total over all strings; never raises."""

        text = decode(raw_body or "")
        pieces: List[_Piece] = [text]
        for recognizer in self._recognizers:
            pieces = self._recognize(recognizer, pieces)
        return self._materialize(pieces)

    @staticmethod
    def _recognize(recognizer: Recognizer, pieces: Sequence[_Piece]) -> List[_Piece]:
        result: List[_Piece] = []
        for piece in pieces:
            # Placeholders from earlier recognizers are opaque.
            if isinstance(piece, Placeholder):
                result.append(piece)
                continue
            pos = 0
            while True:
                recognition = recognizer.try_match(piece, pos)
                if recognition is None:
                    break
                if recognition.end == recognition.start:
                    # Zero-width matches cannot claim text.
                    break
                result.append(piece[pos:recognition.start])
                result.append(recognition.placeholder)
                pos = recognition.end
            result.append(piece[pos:])
        return result

    def _materialize(self, pieces: Sequence[_Piece]) -> Tuple[Segment, ...]:
        segments: List[Segment] = []
        buffer: List[str] = []
        for piece in pieces:
            if isinstance(piece, Placeholder):
                if buffer:
                    segments.append(PlainText("".join(buffer)))
                    buffer = []
                segments.append(self._by_name[piece.recognizer].materialize(piece))
            elif piece:
                buffer.append(piece)
        if buffer or not segments:
            segments.append(PlainText("".join(buffer)))
        return tuple(segments)


def quote_targets(segments: Iterable[Segment]) -> List[int]:
    """Return quote target ids in the order they appear, duplicates included."""

    return [segment.target_id for segment in segments if isinstance(segment, QuoteReference)]


_DEFAULT = Annotator()


def annotate(raw_body: str) -> Tuple[Segment, ...]:
    """Annotate with the default recognizer order."""

    return _DEFAULT.annotate(raw_body)
