"""JSON Lines helpers using orjson."""

from collections.abc import Iterator
from pathlib import Path
from typing import IO, Any, Dict, List, Optional, Union

import orjson


class JSONLReader:
    """Reader for JSONL (JSON Lines) files."""

    def __init__(self, file_path: Union[str, Path]) -> None:
        self.file_path = Path(file_path)

    def iterate(self) -> Iterator[Dict[str, Any]]:
        """
        Iterate over non-blank lines in the JSONL file.

        Yields:
            Parsed JSON objects

        Raises:
            orjson.JSONDecodeError: If a line is not valid JSON
        """
        with open(self.file_path, "rb") as f:
            for line in f:
                line = line.strip()
                if line:
                    yield orjson.loads(line)

    def read_all(self) -> List[Dict[str, Any]]:
        return list(self.iterate())


class JSONLWriter:
    """Writer for JSONL (JSON Lines) files."""

    def __init__(self, file_path: Union[str, Path], mode: str = "w") -> None:
        """
        Initialize JSONL writer.

        Args:
            file_path: Path to the output JSONL file
            mode: File open mode ("w" for write, "a" for append)
        """
        self.file_path = Path(file_path)
        self.mode = mode
        self._file: Optional[IO[Any]] = None

        self.file_path.parent.mkdir(parents=True, exist_ok=True)

    def __enter__(self) -> "JSONLWriter":
        self._file = open(self.file_path, self.mode + "b")
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[Any],
    ) -> None:
        if self._file:
            self._file.close()
            self._file = None

    def write(self, data: Dict[str, Any]) -> None:
        json_bytes = orjson.dumps(
            data, option=orjson.OPT_APPEND_NEWLINE | orjson.OPT_NON_STR_KEYS
        )
        if self._file:
            self._file.write(json_bytes)

    def write_batch(self, data_list: List[Dict[str, Any]]) -> None:
        for data in data_list:
            self.write(data)


def read_jsonl(file_path: Union[str, Path]) -> List[Dict[str, Any]]:
    return JSONLReader(file_path).read_all()


def write_jsonl(data: List[Dict[str, Any]], file_path: Union[str, Path]) -> None:
    with JSONLWriter(file_path, "w") as writer:
        writer.write_batch(data)


def append_jsonl(data: Dict[str, Any], file_path: Union[str, Path]) -> None:
    """Append a single record, creating the file and its directory if needed."""
    with JSONLWriter(file_path, "a") as writer:
        writer.write(data)
