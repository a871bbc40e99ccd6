"""Curated clang-tidy check lists.

Checks are split into two collections: "required" findings must be fixed,
"optional" findings are advisory. The analyzer receives both as a single
comma-separated `-checks=` value, required first.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Tuple

from .exceptions import ConfigurationError

REQUIRED_CHECKS: Tuple[str, ...] = (
    "bugprone-assert-side-effect",
    "bugprone-copy-constructor-init",
    "bugprone-infinite-loop",
    "bugprone-integer-division",
    "bugprone-macro-parentheses",
    "bugprone-macro-repeated-side-effects",
    "bugprone-move-forwarding-reference",
    "bugprone-multiple-statement-macro",
    "bugprone-reserved-identifier",
    "bugprone-sizeof-expression",
    "bugprone-string-integer-assignment",
    "bugprone-throw-keyword-missing",
    "bugprone-undefined-memory-manipulation",
    "bugprone-unhandled-self-assignment",
    "bugprone-unused-raii",
    "bugprone-unused-return-value",
    "bugprone-use-after-move",
    "cert-dcl58-cpp",
    "cert-env33-c",
    "cert-err34-c",
    "cert-err58-cpp",
    "cert-oop57-cpp",
    "cppcoreguidelines-init-variables",
    "cppcoreguidelines-interfaces-global-init",
    "cppcoreguidelines-macro-usage",
    "cppcoreguidelines-narrowing-conversions",
    "cppcoreguidelines-no-malloc",
    "cppcoreguidelines-pro-bounds-constant-array-index",
    "cppcoreguidelines-pro-bounds-pointer-arithmetic",
    "cppcoreguidelines-pro-type-const-cast",
    "cppcoreguidelines-pro-type-cstyle-cast",
    "cppcoreguidelines-pro-type-reinterpret-cast",
    "cppcoreguidelines-pro-type-static-cast-downcast",
    "cppcoreguidelines-slicing",
    "cppcoreguidelines-special-member-functions",
    "fuchsia-trailing-return",
    "fuchsia-virtual-inheritance",
    "google-default-arguments",
    "google-global-names-in-headers",
    "misc-definitions-in-headers",
    "misc-misplaced-const",
    "misc-non-private-member-variables-in-classes",
    "misc-throw-by-value-catch-by-reference",
    "misc-uniqueptr-reset-release",
    "misc-unused-alias-decls",
    "misc-unused-using-decls",
    "modernize-avoid-bind",
    "modernize-avoid-c-arrays",
    "modernize-concat-nested-namespaces",
    "modernize-deprecated-headers",
    "modernize-deprecated-ios-base-aliases",
    "modernize-shrink-to-fit",
    "modernize-use-auto",
    "modernize-use-bool-literals",
    "modernize-use-nullptr",
    "performance-for-range-copy",
    "performance-implicit-conversion-in-loop",
    "performance-inefficient-algorithm",
    "performance-inefficient-string-concatenation",
    "performance-inefficient-vector-operation",
    "performance-move-const-arg",
    "performance-move-constructor-init",
    "performance-unnecessary-copy-initialization",
    "performance-unnecessary-value-param",
    "readability-avoid-const-params-in-decls",
    "readability-const-return-type",
    "readability-container-size-empty",
    "readability-deleted-default",
    "readability-implicit-bool-conversion",
    "readability-redundant-access-specifiers",
    "readability-redundant-control-flow",
    "readability-redundant-preprocessor",
    "readability-redundant-smartptr-get",
    "readability-static-definition-in-anonymous-namespace",
    "readability-uniqueptr-delete-release",
)

OPTIONAL_CHECKS: Tuple[str, ...] = (
    "bugprone-dynamic-static-initializers",
    "bugprone-exception-escape",
    "bugprone-fold-init-type",
    "bugprone-forward-declaration-namespace",
    "bugprone-forwarding-reference-overload",
    "bugprone-incorrect-roundings",
    "bugprone-misplaced-widening-cast",
    "bugprone-parent-virtual-call",
    "bugprone-spuriously-wake-up-functions",
    "bugprone-suspicious-include",
    "bugprone-suspicious-memset-usage",
    "bugprone-too-small-loop-variable",
    "bugprone-undelegated-constructor",
    "cert-err60-cpp",
    "cert-mem57-cpp",
    "cert-msc50-cpp",
    "cert-msc51-cpp",
    "google-readability-casting",
    "google-readability-todo",
    "google-runtime-int",
    "google-runtime-operator",
    "hicpp-exception-baseclass",
    "hicpp-multiway-paths-covered",
    "misc-no-recursion",
    "misc-unconventional-assign-operator",
    "misc-unused-parameters",
    "modernize-make-shared",
    "modernize-make-unique",
    "modernize-use-default-member-init",
    "modernize-use-emplace",
    "modernize-use-nodiscard",
    "modernize-use-uncaught-exceptions",
    "performance-type-promotion-in-math-fn",
    "readability-delete-null-pointer",
    "readability-function-size",
    "readability-identifier-naming",
    "readability-inconsistent-declaration-parameter-name",
    "readability-isolate-declaration",
)


@dataclass(frozen=True)
class RuleSetCatalog:
    """Immutable pair of named, ordered check collections."""

    required: Tuple[str, ...]
    optional: Tuple[str, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "required", tuple(self.required))
        object.__setattr__(self, "optional", tuple(self.optional))
        for name, checks in (("required", self.required), ("optional", self.optional)):
            for index, check in enumerate(checks):
                if not isinstance(check, str) or not check.strip():
                    raise ConfigurationError(
                        f"Empty check identifier at position {index} of the {name} checks"
                    )

    def required_checks(self) -> Tuple[str, ...]:
        return self.required

    def optional_checks(self) -> Tuple[str, ...]:
        return self.optional

    def composed_configuration(self) -> str:
        """The `-checks=` argument: required checks, then optional ones, comma-joined."""
        # Repeats are passed through; clang-tidy tolerates them.
        return ",".join(self.required + self.optional)

    def extended(self, required: Iterable[str] = (), optional: Iterable[str] = ()) -> "RuleSetCatalog":
        """Return a new catalog with extra checks appended to each collection."""
        return RuleSetCatalog(self.required + tuple(required), self.optional + tuple(optional))


DEFAULT_CATALOG = RuleSetCatalog(REQUIRED_CHECKS, OPTIONAL_CHECKS)
