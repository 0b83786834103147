"""CSV import adapter: raw tabular text to ordered row mappings.

Values are never type-converted here; consumers parse numeric columns.
"""
import io
from typing import Dict, List, Union

import pandas as pd

from quote_builder.exceptions import ImportValidationError


ENCODINGS = ["utf-8-sig", "cp1252", "latin-1"]


def _decode(data: bytes) -> str:
    for enc in ENCODINGS:
        try:
            return data.decode(enc)
        except UnicodeDecodeError:
            continue
    # latin-1 decodes any byte sequence, so this is unreachable in practice
    raise ImportValidationError("File is not valid text")


def parse_csv(data: Union[str, bytes]) -> List[Dict[str, str]]:
    """Parse CSV text with a header row into a list of ``{header: value}`` dicts.

    Header names are stripped, every value stays a string (empty cells are
    ``""``) and fully blank rows are dropped.
    """
    text = _decode(data) if isinstance(data, bytes) else data
    text = text.lstrip("\ufeff")

    try:
        df = pd.read_csv(
            io.StringIO(text),
            header=0,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError:
        raise ImportValidationError("File is empty")
    except pd.errors.ParserError as e:
        raise ImportValidationError(f"File could not be parsed as CSV: {str(e)}")

    df = df.fillna("")
    df.columns = [str(c).strip() for c in df.columns]
    if len(df.columns) and len(df):
        blank = df.apply(lambda row: all(not str(v).strip() for v in row), axis=1)
        df = df[~blank]

    return df.to_dict(orient="records")
