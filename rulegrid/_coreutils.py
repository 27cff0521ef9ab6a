"""
Core utilities that are loaded into the root namespace or used internally.
"""

import os
import re
import sys
import types
import logging
from contextlib import contextmanager


# %% Logging


logger = logging.getLogger("rulegrid")
logger.setLevel(logging.WARNING)


_re_wgpu_ob = re.compile(r"`<[a-z|A-Z]+-\([0-9]+, [0-9]+, [a-z|A-Z]+\)>`")


def error_message_hash(message):
    # Remove wgpu object representations, because they contain id's that may change at each draw.
    # E.g. `<CommandBuffer- (12, 4, Metal)>`
    message = _re_wgpu_ob.sub("WGPU_OBJECT", message)
    return hash(message)


_error_counts = {}


@contextmanager
def log_exception(kind):
    """Context manager to log any exceptions, but only log a one-liner
    for subsequent occurrences of the same error to avoid spamming by
    repeating errors in e.g. a step that is called every frame.
    """
    try:
        yield
    except Exception as err:
        # Store exc info for postmortem debugging
        exc_info = list(sys.exc_info())
        exc_info[2] = exc_info[2].tb_next  # skip *this* function
        sys.last_type, sys.last_value, sys.last_traceback = exc_info
        # Show traceback, or a one-line summary
        msg = str(err)
        msgh = error_message_hash(msg)
        if msgh not in _error_counts:
            # Provide the exception, so the default logger prints a stacktrace.
            _error_counts[msgh] = 1
            logger.error(kind, exc_info=err)
        else:
            # We've seen this message before, return a one-liner instead.
            _error_counts[msgh] = count = _error_counts[msgh] + 1
            msg = kind + ": " + msg.split("\n")[0].strip()
            msg = msg if len(msg) <= 70 else msg[:69] + "…"
            logger.error(msg + f" ({count})")


# %% Enum


class EnumType(type):
    """Metaclass for enums."""

    def __new__(cls, name, bases, dct):
        # Collect and check fields
        member_map = {}
        for key, val in dct.items():
            if not key.startswith("_"):
                val = key if val is None else val
                if not isinstance(val, str):
                    raise TypeError("Enum fields must be str.")
                member_map[key] = val
        # Some field values may have been updated
        dct.update(member_map)
        # Create class
        klass = super().__new__(cls, name, bases, dct)
        # Attach some fields
        klass.__fields__ = tuple(member_map)
        klass.__members__ = types.MappingProxyType(member_map)  # enums.Enum compat
        return klass

    def __dir__(cls):
        return cls.__members__.keys()

    def __iter__(cls):
        return iter(cls.__members__.values())

    def __getitem__(cls, key):
        return cls.__members__[key]

    def __contains__(cls, value):
        return value in cls.__members__.values()

    def __repr__(cls):
        options = ", ".join(f"'{x}'" for x in cls.__members__.values())
        return f"<{cls.__name__} enum with options: {options}>"

    def __setattr__(cls, name, value):
        if name.startswith("_"):
            super().__setattr__(name, value)
        else:
            raise RuntimeError("Cannot set values on an enum.")


class BaseEnum(metaclass=EnumType):
    """Base class for flags and enums.

    Looks like Python's builtin Enum class, but is simpler; fields are simply ints or strings.
    """

    def __init__(self):
        raise RuntimeError("Cannot instantiate an enum.")


# %% Environment


def get_env_choice(name, choices, default):
    """Get the value of an environment variable that must be one of the given choices.

    Invalid values are logged and replaced with the default.
    """
    value = os.getenv(name, "").strip().lower()
    if not value:
        return default
    if value not in choices:
        logger.warning(
            f"Ignoring invalid value {value!r} for {name}, expected one of {choices}."
        )
        return default
    return value
