"""Run context: the package table, the requirement list, and the Finalizer.

A ``RunContext`` is owned by the top-level run and passed to everything
that declares packages or requirements. It replaces process-wide mutable
state: ``finalize`` depends on exactly the declarations made through the
context it is called on.

Usage::

    ctx = RunContext.from_settings(settings)
    ctx.declare_requirement("extern/lib-a/gitpin.yaml", "clean-core",
                            min_commit="4f1c...")
    ctx.declare_package("clean-core", "https://...", "dfc5...")
    ctx.finalize()

Requirements may be declared before the package they name; nothing is
checked until ``finalize``.
"""

from __future__ import annotations

import logging
from typing import Mapping

from gitpin.config import Settings
from gitpin.core.constraints.models import Requirement
from gitpin.core.git.ancestry import AncestryOracle
from gitpin.core.git.cache import RepositoryCache
from gitpin.core.git.runner import GitRunner
from gitpin.core.git.store import FactStore, JsonFactStore
from gitpin.core.package.models import CheckoutMode, PackageDeclaration, normalize_name
from gitpin.core.package.realizer import PackageRealizer, RealizationOutcome
from gitpin.core.package.state import UpdateFlags
from gitpin.exceptions import (
    ConfigurationError,
    ConstraintViolationError,
    GitPinError,
    MissingPackageError,
)

logger = logging.getLogger(__name__)


class RunContext:
    """Registries of one run plus the constraint Finalizer.

    Args:
        realizer: Realizes each declared package.
        oracle: Answers ancestry questions during ``finalize``.
        auto_update: Global auto-update switch.
        allow_mode_switch: Allow converting checkouts between modes.
        package_auto_update: Per-package overrides keyed by normalized
            name; they win over the declaration's own ``auto_update``.
    """

    def __init__(
        self,
        realizer: PackageRealizer,
        oracle: AncestryOracle,
        auto_update: bool = True,
        allow_mode_switch: bool = False,
        package_auto_update: Mapping[str, bool] | None = None,
    ) -> None:
        self.realizer = realizer
        self.oracle = oracle
        self.auto_update = auto_update
        self.allow_mode_switch = allow_mode_switch
        self.package_auto_update = dict(package_auto_update or {})
        self.packages: dict[str, PackageDeclaration] = {}
        self.requirements: list[Requirement] = []
        self.outcomes: list[RealizationOutcome] = []
        self._finalized = False

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        store: FactStore | None = None,
        runner: GitRunner | None = None,
    ) -> RunContext:
        """Wire a context from resolved settings.

        Args:
            settings: The run settings.
            store: Ancestry fact store; defaults to the JSON store in the
                cache directory.
            runner: Git runner; defaults to one using the configured
                executable.
        """
        runner = runner or GitRunner(settings.git_executable)
        cache = RepositoryCache(settings.cache_dir, runner)
        if store is None:
            store = JsonFactStore(settings.ancestry_store_path)
        return cls(
            realizer=PackageRealizer(settings.extern_dir, cache, settings.build_descriptor),
            oracle=AncestryOracle(cache, store),
            auto_update=settings.auto_update,
            allow_mode_switch=settings.allow_mode_switch,
            package_auto_update=settings.package_auto_update,
        )

    # -- Declarations -------------------------------------------------------

    def flags_for(self, decl: PackageDeclaration) -> UpdateFlags:
        return UpdateFlags(
            auto_update=self.auto_update,
            package_auto_update=self.package_auto_update.get(decl.normalized_name, decl.auto_update),
            allow_mode_switch=self.allow_mode_switch,
        )

    def declare_package(
        self,
        name: str,
        repository_url: str,
        commit: str,
        checkout_mode: str | CheckoutMode | None = None,
        update_ref: str | None = None,
        wire_into_build: bool = True,
        auto_update: bool = True,
    ) -> RealizationOutcome:
        """Declare a package and realize it immediately.

        The declaration is validated before any I/O.

        Returns:
            The ``RealizationOutcome`` of the package.

        Raises:
            ConfigurationError: For an invalid declaration, or a name whose
                normalized form was already declared in this run.
            DirtyCheckoutError: See ``PackageRealizer.realize``.
            GitCommandError: See ``PackageRealizer.realize``.
        """
        self._check_open()
        decl = PackageDeclaration(
            name=name,
            repository_url=repository_url,
            commit=commit,
            checkout_mode=CheckoutMode.parse(checkout_mode),
            update_ref=update_ref,
            wire_into_build=wire_into_build,
            auto_update=auto_update,
        )
        existing = self.packages.get(decl.normalized_name)
        if existing is not None:
            raise ConfigurationError(
                f"package '{name}' is being declared again. The normalized "
                f"identifier '{decl.normalized_name}' is already used by package "
                f"'{existing.name}'. Package names must be unique once normalized "
                "(upper-case, '-' and '.' become '_')."
            )
        self.packages[decl.normalized_name] = decl

        outcome = self.realizer.realize(decl, self.flags_for(decl))
        self.outcomes.append(outcome)
        return outcome

    def declare_requirement(
        self,
        origin: str,
        package_name: str,
        advisory_url: str | None = None,
        min_commit: str | None = None,
    ) -> Requirement:
        """Record that ``origin`` needs ``package_name`` at ``min_commit`` or later.

        Pure bookkeeping: the package does not have to be declared yet.

        Raises:
            ConfigurationError: If ``package_name`` is empty.
        """
        self._check_open()
        if not package_name:
            raise ConfigurationError(f"requirement from '{origin}': package name is required")
        requirement = Requirement(
            origin=origin,
            package_name=package_name,
            advisory_repository_url=advisory_url or None,
            min_commit=min_commit or None,
        )
        self.requirements.append(requirement)
        return requirement

    def get_package(self, name: str) -> PackageDeclaration | None:
        """Look a declared package up by any spelling of its name."""
        return self.packages.get(normalize_name(name))

    # -- Finalizer ----------------------------------------------------------

    def finalize(self) -> list[Requirement]:
        """Validate every requirement against the declared packages.

        Requirements are checked in declaration order; ones without a
        ``min_commit`` are skipped. The first failure aborts.

        Returns:
            The requirements that were checked.

        Raises:
            MissingPackageError: If a requirement names an undeclared package.
            ConstraintViolationError: If a package's commit does not descend
                from a required minimum commit.
            AncestryError: If ancestry cannot be determined.
        """
        self._check_open()
        self._finalized = True

        checked: list[Requirement] = []
        for req in self.requirements:
            if not req.is_checked:
                continue

            decl = self.get_package(req.package_name)
            if decl is None:
                raise MissingPackageError(
                    f"requirement from '{req.origin}' needs package "
                    f"'{req.package_name}', but no package with that name was declared."
                )

            if not self.oracle.is_ancestor(decl.repository_url, req.min_commit, decl.commit):
                raise ConstraintViolationError(
                    f"version constraint violated for package '{decl.name}'.\n"
                    f"  Required by: {req.origin}\n"
                    f"  MIN_COMMIT:  {req.min_commit}\n"
                    f"  Provided:    {decl.commit}\n"
                    "The provided commit is not a descendant of the required minimum.\n"
                    f"Advance the commit of package '{decl.name}' to a newer one."
                )
            logger.debug(
                "%s: %s includes %s", req.origin, decl.name, req.min_commit
            )
            checked.append(req)
        return checked

    def _check_open(self) -> None:
        if self._finalized:
            raise GitPinError("this run has already been finalized")
