"""
Integer bounds shared by request bodies and route parameters.

Every integer column is a 32-bit INTEGER; values outside that range are
rejected as bad input before they reach the driver.
"""

from typing import Annotated
from pydantic import Field

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1

Int32 = Annotated[int, Field(ge=INT32_MIN, le=INT32_MAX)]
