from typing import Annotated

from pydantic import StrictStr, StringConstraints

NonEmptyStr = Annotated[StrictStr, StringConstraints(strip_whitespace=True, min_length=1)]
