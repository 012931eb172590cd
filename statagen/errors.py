# statagen/errors.py
"""
Error Types

All exceptions raised by StataGen derive from StataGenError so the CLI
can report them uniformly. The two collaborator failures
(SuggestionFetchFailure, CodeGenerationFailure) are caught at the session
boundary and turned into notices; the rest indicate misuse and propagate.
"""


class StataGenError(Exception):
    """Base class for all StataGen errors."""


class StageError(StataGenError):
    """An operation was attempted in a wizard stage that does not allow it."""


class InvalidRoleConfiguration(StataGenError, ValueError):
    """A role count is outside its permitted range."""


class InvalidVariableName(StataGenError, ValueError):
    """A variable name is not a valid Stata identifier."""


class UnknownMethod(StataGenError, KeyError):
    """A category or method key is not in the method catalog."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message instead
        return str(self.args[0]) if self.args else ""


class SessionBusy(StataGenError):
    """A collaborator call of the same kind is still outstanding."""


class SuggestionFetchFailure(StataGenError):
    """The variable-suggestion exchange did not yield a usable taxonomy."""


class SchemaMismatch(SuggestionFetchFailure):
    """The suggestion response did not conform to the variables schema."""


class CodeGenerationFailure(StataGenError):
    """The code-generation exchange failed or returned nothing."""
