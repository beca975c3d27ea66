"""
Protocol definitions for editor host <-> Sevenmote communication.

Uses JSON-RPC over stdio for communication.
"""

from typing import Dict, Any, Optional
from dataclasses import dataclass
import json


@dataclass(frozen=True)
class CursorPosition:
    """Line and column coordinates in the editor buffer (both 0-indexed)."""
    line: int
    character: int

    def to_dict(self) -> Dict[str, int]:
        return {'line': self.line, 'character': self.character}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CursorPosition':
        return cls(
            line=int(data.get('line', 0)),
            character=int(data.get('character', 0))
        )


@dataclass(frozen=True)
class TriggerResult:
    """
    An open suggestion session.

    `start`/`end` bound the span that is replaced on acceptance; `query`
    is the typed name with its delimiters stripped.
    """
    start: CursorPosition
    end: CursorPosition
    query: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'start': self.start.to_dict(),
            'end': self.end.to_dict(),
            'query': self.query
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TriggerResult':
        return cls(
            start=CursorPosition.from_dict(data.get('start', {})),
            end=CursorPosition.from_dict(data.get('end', {})),
            query=data.get('query', '')
        )


@dataclass
class SuggestionItem:
    """One row of the suggestion popup."""
    name: str
    identifier: str
    image_url: str
    label: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'identifier': self.identifier,
            'image_url': self.image_url,
            'label': self.label
        }


@dataclass
class EditOperation:
    """A buffer mutation the editor host must apply, in order."""
    op: str  # 'replace_range' or 'replace_selection'
    text: str
    start: Optional[CursorPosition] = None
    end: Optional[CursorPosition] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {'op': self.op, 'text': self.text}
        if self.start is not None:
            data['start'] = self.start.to_dict()
        if self.end is not None:
            data['end'] = self.end.to_dict()
        return data


@dataclass
class SuggestionRequest:
    """Request for suggestions at a cursor position."""
    line_text: str
    cursor: CursorPosition

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SuggestionRequest':
        """Create request from dictionary."""
        return cls(
            line_text=data.get('line_text', ''),
            cursor=CursorPosition.from_dict(data.get('cursor', {}))
        )


@dataclass
class SelectionRequest:
    """Request to accept a suggestion."""
    name: str
    trigger: TriggerResult
    range_text: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SelectionRequest':
        """Create request from dictionary."""
        return cls(
            name=data.get('name', ''),
            trigger=TriggerResult.from_dict(data.get('trigger', {})),
            range_text=data.get('range_text')
        )


class JSONRPCMessage:
    """JSON-RPC 2.0 message format."""

    PARSE_ERROR = -32700
    INVALID_PARAMS = -32602
    METHOD_NOT_FOUND = -32601
    INTERNAL_ERROR = -32603
    EMOTE_NOT_FOUND = -32004

    @staticmethod
    def request(method: str, params: Dict[str, Any], id: int) -> str:
        """Create a JSON-RPC request."""
        return json.dumps({
            'jsonrpc': '2.0',
            'method': method,
            'params': params,
            'id': id
        })

    @staticmethod
    def response(result: Any, id: int) -> str:
        """Create a JSON-RPC response."""
        return json.dumps({
            'jsonrpc': '2.0',
            'result': result,
            'id': id
        })

    @staticmethod
    def error(code: int, message: str, id: Optional[int]) -> str:
        """Create a JSON-RPC error response."""
        return json.dumps({
            'jsonrpc': '2.0',
            'error': {
                'code': code,
                'message': message
            },
            'id': id
        })

    @staticmethod
    def parse(message: str) -> Dict[str, Any]:
        """Parse a JSON-RPC message."""
        return json.loads(message)
