"""Read expressions, one per line, from text files and archives."""
from pathlib import Path
import tarfile
import tempfile
from typing import Iterator, List, Tuple
import zipfile

import py7zr
from pydantic import BaseModel, ConfigDict, Field, FilePath

from silver_calculator.common.logger import logger
from silver_calculator.common.operations import OperationRequest
from silver_calculator.session.calculator import RESULT_MARKER


COMMENT_PREFIX: str = "#"


def expression_from_line(line: str) -> str:
    """
    Extract the expression written on one line.

    Lines use the calculator display format: anything after `#` is a comment,
    and a result shown before the result marker is dropped, so a copied
    display such as "7.0  ~  7.0 * 2" yields "7.0 * 2".

    :param str line: Raw line

    :return: Expression, empty if the line holds none
    :rtype: str
    """
    text = line.split(COMMENT_PREFIX, 1)[0]
    return text.split(RESULT_MARKER)[-1].strip()


def parse_requests(text: str, source: str = "") -> List[OperationRequest]:
    """
    Turn the lines of a document into requests, keeping their line numbers.

    :param str text: Document content
    :param str source: Name recorded on each request

    :return: One request per line holding an expression
    :rtype: List[OperationRequest]
    """
    requests: List[OperationRequest] = []
    for line_number, line in enumerate(text.splitlines(), start=1):
        expression = expression_from_line(line)
        if expression:
            requests.append(OperationRequest(expression=expression, line_number=line_number, source=source))
    return requests


class ExpressionSource(BaseModel):
    """
    A file of expressions: a .txt file, or a .zip, .tar.xz or .7z archive.

    Every .txt member of an archive is read, in name order, and results
    refer to it as "<archive>:<member>".
    """

    model_config = ConfigDict(frozen=True)

    path: FilePath = Field(..., description="Text file or archive holding expressions")

    def documents(self) -> Iterator[Tuple[str, str]]:
        """
        Yield (name, text) for each text document in the source.

        :return: Iterator of (name, content) pairs
        :rtype: Iterator[Tuple[str, str]]
        :raises ValueError: If the format is unsupported or an archive holds no .txt file
        """
        name = self.path.name
        if self.path.suffix == ".txt":
            yield name, self.path.read_text(encoding="utf-8")
        elif self.path.suffix == ".zip":
            yield from self._zip_documents(name)
        elif self.path.suffixes[-2:] == [".tar", ".xz"]:
            yield from self._tar_documents(name)
        elif self.path.suffix == ".7z":
            yield from self._7z_documents(name)
        else:
            raise ValueError(f"📄❌ Unsupported source format: {self.path.suffix}")

    def requests(self) -> List[OperationRequest]:
        """
        Read every expression of the source.

        :return: Requests in document order
        :rtype: List[OperationRequest]
        """
        requests: List[OperationRequest] = []
        for name, text in self.documents():
            found = parse_requests(text, source=name)
            logger.info(f"📄 {len(found)} expressions read from {name}")
            requests.extend(found)
        return requests

    def _zip_documents(self, name: str) -> Iterator[Tuple[str, str]]:
        with zipfile.ZipFile(self.path, "r") as zf:
            members = sorted(m for m in zf.namelist() if m.endswith(".txt"))
            if not members:
                raise ValueError("📄❌ No .txt file found in zip archive")
            for member in members:
                yield f"{name}:{member}", zf.read(member).decode("utf-8")

    def _tar_documents(self, name: str) -> Iterator[Tuple[str, str]]:
        with tarfile.open(self.path, "r:xz") as tf:
            members = sorted(
                (m for m in tf.getmembers() if m.isfile() and m.name.endswith(".txt")),
                key=lambda m: m.name,
            )
            if not members:
                raise ValueError("📄❌ No .txt file found in tar.xz archive")
            for member in members:
                yield f"{name}:{member.name}", tf.extractfile(member).read().decode("utf-8")

    def _7z_documents(self, name: str) -> Iterator[Tuple[str, str]]:
        with py7zr.SevenZipFile(self.path, mode="r") as archive:
            members = sorted(m for m in archive.getnames() if m.endswith(".txt"))
            if not members:
                raise ValueError("📄❌ No .txt file found in 7z archive")
            # py7zr extracts to disk; members are read back from a scratch directory
            with tempfile.TemporaryDirectory() as tmpdir:
                archive.extractall(path=tmpdir)
                for member in members:
                    yield f"{name}:{member}", (Path(tmpdir) / member).read_text(encoding="utf-8")
