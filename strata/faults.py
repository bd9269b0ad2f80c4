"""
Strata faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every issue the library
  can surface. Codes are grouped by domain (configuration, usage, violations,
  warnings) so logs and searches stay predictable.
- StrataException / StrataWarning: base types that carry message + options and
  know how to render themselves in a friendly, lowercased, and actionable way.
- ConfigurationError family: raised while declaring specifications and arguments.
- UsageError family: raised when the matching engine is called with an invalid
  option combination.
- ViolationError / ViolationExit: the exception form of restriction violations,
  only produced on request (see restrictions.enforce).
- trigger(): central entry point to surface any fault (respecting shell/deferred/fancy/colorful).

Integration
- Declarations raise configuration errors directly (they are programming errors).
- Restriction violations are plain values; enforce() turns them into a
  ViolationExit and triggers it.
- In non-shell mode, exceptions are raised; in shell mode, they are rendered via rich.
- Host applications can set __prog__, __styles__ and __codes__ in __main__ to
  customize headers, colors and code labels.
"""
import copy
import inspect
import os.path
import sys
import warnings
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping (by high-level domain)
    - configuration (2110x)
      • INVALID_DELIMITER, INVALID_NAME, DUPLICATE_HIERARCHY, DUPLICATE_DELIMITER,
        DUPLICATE_ARGUMENT, FOREIGN_SPECIFICATION
    - usage (2120x)
      • CONFLICTING_OPTIONS, UNSUPPORTED_OPTIONS
    - violations (2130x), one per restriction kind
    - warnings (2210x)
      • UNREACHABLE_CHAIN
    """
    # --- configuration errors (21xxx) ---
    INVALID_DELIMITER       = 21101
    INVALID_NAME            = 21102
    DUPLICATE_HIERARCHY     = 21103
    DUPLICATE_DELIMITER     = 21104
    DUPLICATE_ARGUMENT      = 21105
    FOREIGN_SPECIFICATION   = 21106

    # --- usage errors (21xxx) ---
    CONFLICTING_OPTIONS     = 21201
    UNSUPPORTED_OPTIONS     = 21202

    # --- violations (21xxx) ---
    ILLEGAL_ARGUMENTS       = 21301
    UNKNOWN_ARGUMENT        = 21302
    FIRST_ARGUMENT_NOT_ROOT = 21303
    PARAMETER_COUNT         = 21304
    ILLEGAL_COMBINATION     = 21305
    MANDATED_COMBINATION    = 21306
    NO_ARGUMENTS            = 21307
    UNEXPECTED_ARGUMENTS    = 21308

    # --- warnings (22xxx) ---
    UNREACHABLE_CHAIN       = 22101

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _program():
    main = __import__("__main__")
    return getattr(main, "__prog__", os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else "strata")


def _render(fault, kind, palette):
    """
    shared rich renderer for exceptions and warnings.

    the header reads "[ prog — code | title ]", followed by the message and a hint line.
    """
    main = __import__("__main__")
    options = fault.options
    colorful = options.get("colorful", True)
    fancy = options.get("fancy", False)

    styles = defaultdict(str, palette | getattr(main, "__styles__", {}))

    def styler(style):
        return styles[style] if colorful else ""

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if not colorful:
            return Text(str(fragment))
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), style)

    code = (" — ", text(fault.code.normalize(), styler("code"))) if fault.code else ()
    header = Text.assemble(
        "[ ",
        text(_program(), styler("prog-name")),
        *code,
        " | ",
        text(fault.title.title(), styler(kind + "-title")),
        " ]"
    )
    message = text(fault.message, styler(kind + "-message"))
    renders = [message]
    if hint := fault.hint:
        renders.append(Text.assemble(text(" → ", styler("hint-arrow")), text(hint, styler("hint"))))

    if fancy:
        width = console.width - 4
        try:
            width = int(width * options["ratio"])
        except KeyError:
            width = None
        return Panel(Group(*renders), title=header, title_align="left", width=width)

    return Group(header, *renders)


class StrataException(Exception):
    """
    base error: a message plus read-only options (context and rendering switches).

    class attributes provide the default code, title and hint; options with the
    same names override them per instance.
    """
    code = Unset
    title = "fault"
    hint = Unset

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)
        for name in ("code", "title", "hint"):
            if name in options:
                setattr(self, name, options[name])

    def __rich__(self):
        return _render(self, "error", {
            # header parts
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "error-title": "bold #FF4DA6",

            # body
            "error-message": "#C8C8D0",
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        })

    def __str__(self):
        return str(self.message) if self.message is not Unset else self.title

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        if self.options.get("deferred", False):
            return
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class ConfigurationError(StrataException, ValueError):
    title = "invalid declaration"


class InvalidDelimiterError(ConfigurationError):
    code = FaultCode.INVALID_DELIMITER
    title = "invalid delimiter"
    hint = "use a non-empty delimiter made of symbols only (e.g. '--', '-', ':')"


class InvalidNameError(ConfigurationError):
    code = FaultCode.INVALID_NAME
    title = "invalid argument name"
    hint = "use a non-empty name without whitespace"


class DuplicateHierarchyError(ConfigurationError):
    code = FaultCode.DUPLICATE_HIERARCHY
    title = "duplicate hierarchy"
    hint = "declare each hierarchy once per registry"


class DuplicateDelimiterError(ConfigurationError):
    code = FaultCode.DUPLICATE_DELIMITER
    title = "duplicate delimiter"
    hint = "declare each delimiter once per registry"


class DuplicateArgumentError(ConfigurationError):
    code = FaultCode.DUPLICATE_ARGUMENT
    title = "duplicate argument"
    hint = "reuse the argument that was already declared"


class ForeignSpecificationError(ConfigurationError):
    code = FaultCode.FOREIGN_SPECIFICATION
    title = "foreign specification"
    hint = "declare arguments on the registry that owns their specification"


class UsageError(StrataException, ValueError):
    title = "invalid usage"


class ConflictingOptionsError(UsageError):
    code = FaultCode.CONFLICTING_OPTIONS
    title = "conflicting search options"
    hint = "'with' and 'without' flags of the same kind cannot be combined"


class UnsupportedOptionsError(UsageError):
    code = FaultCode.UNSUPPORTED_OPTIONS
    title = "unsupported search options"
    hint = "combine only children, siblings and params flags"


class ViolationError(StrataException):
    """
    exception form of a single restriction violation (see restrictions.enforce).

    the wrapped Violation record is available as options["violation"].
    """
    title = "restriction violated"

    @property
    def violation(self):
        return self.options.get("violation")


class StrataWarning(Warning):
    code = Unset
    title = "warning"
    hint = Unset

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        return _render(self, "warning", {
            # header parts
            "prog-name": "bold #E6E6F0",
            "code": "bold #FFB400",
            "warning-title": "bold #FFC2E0",

            # body
            "warning-message": "#D6D6DE",
            "hint-arrow": "#B8EFAF dim",
            "hint": "italic #B8EFAF",
        })

    def __str__(self):
        return str(self.message) if self.message is not Unset else self.title

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=self.options.get("stacklevel", len(inspect.stack())))
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class UnreachableChainWarning(StrataWarning):
    code = FaultCode.UNREACHABLE_CHAIN
    title = "unreachable call-chain"
    hint = "order call-chains from parent to child tiers"


class ViolationExit(ExceptionGroup[ViolationError]):
    def __new__(cls, exceptions, **options):
        return super().__new__(cls, "restrictions violated", exceptions)

    def __init__(self, exceptions, **options):
        super().__init__("restrictions violated", tuple(exceptions))
        self.options = MappingProxyType(options)

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", True)

        styles = defaultdict(str, {
            "prog-name": "bold #E6E6F0",
            "title": "bold #FF4DA6",
        } | getattr(main, "__styles__", {}))

        def text(fragment, style=""):
            return Text(str(fragment), styles[style] if colorful else "")

        header = Text.assemble("[ ", text(_program(), "prog-name"), " — ", text(self.message.title(), "title"), " ]")

        renders = []

        for exception in self.exceptions:
            renders.append(copy.replace(exception, ratio=2/3, colorful=colorful, fancy=self.options.get("fancy", False)))

        if self.options.get("fancy", False):
            return Panel(Group(*renders), title=header, title_align="left")

        return Group(header, *renders)

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        if self.options.get("deferred", False):
            return
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.exceptions, **{**self.options, **overrides})


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via __replace__(**options) before triggering.
    - in shell mode, rendering happens via rich console; otherwise, exceptions are raised
      and warnings are emitted through the warnings module.

    typical options
    - shell, fancy, colorful, deferred, and any context the renderer may want to show.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


__all__ = (
    "FaultCode",
    "StrataException",
    "ConfigurationError",
    "InvalidDelimiterError",
    "InvalidNameError",
    "DuplicateHierarchyError",
    "DuplicateDelimiterError",
    "DuplicateArgumentError",
    "ForeignSpecificationError",
    "UsageError",
    "ConflictingOptionsError",
    "UnsupportedOptionsError",
    "ViolationError",
    "StrataWarning",
    "UnreachableChainWarning",
    "ViolationExit",
    "trigger",
)
