"""Property-based tests for the package state machine.

Whatever the switches, a missing directory is realized, a matching record
is left alone, and an unrecorded directory is never touched.
"""
from __future__ import annotations

from hypothesis import given
from hypothesis import strategies as st

from gitpin.core.package.models import CheckoutMode, PackageDeclaration, PackageMetadata
from gitpin.core.package.state import PackageState, RealizeAction, UpdateFlags, decide


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

commits = st.text(alphabet="0123456789abcdef", min_size=40, max_size=40)
modes = st.sampled_from(list(CheckoutMode))
url_choices = st.sampled_from(["https://example.com/a.git", "https://mirror.example.com/a.git"])
flags = st.builds(UpdateFlags, st.booleans(), st.booleans(), st.booleans())


@st.composite
def declarations(draw) -> PackageDeclaration:
    return PackageDeclaration("pkg", draw(url_choices), draw(commits), checkout_mode=draw(modes))


@st.composite
def records(draw) -> PackageMetadata:
    return PackageMetadata("pkg", draw(url_choices), draw(commits), draw(modes))


class TestDecideProperties:
    """Invariants of ``decide`` over all inputs."""

    @given(decl=declarations(), recorded=st.none() | records(), f=flags)
    def test_absent_always_realizes(self, decl, recorded, f) -> None:
        decision = decide(decl, recorded, f, dir_exists=False)
        assert decision.state is PackageState.ABSENT
        assert decision.action is RealizeAction.REALIZE

    @given(decl=declarations(), f=flags)
    def test_foreign_never_touched(self, decl, f) -> None:
        assert decide(decl, None, f, dir_exists=True).action is RealizeAction.SKIP_FOREIGN

    @given(decl=declarations(), f=flags)
    def test_matching_record_is_current(self, decl, f) -> None:
        decision = decide(decl, PackageMetadata.from_declaration(decl), f, dir_exists=True)
        assert decision.state is PackageState.CURRENT
        assert decision.action is RealizeAction.NONE

    @given(decl=declarations(), recorded=records(), f=flags)
    def test_mode_change_needs_permission(self, decl, recorded, f) -> None:
        decision = decide(decl, recorded, f, dir_exists=True)
        if recorded.checkout_mode is not decl.checkout_mode and not f.allow_mode_switch:
            assert decision.action is RealizeAction.SKIP_MODE_SWITCH

    @given(decl=declarations(), recorded=records(), f=flags)
    def test_realize_requires_both_switches(self, decl, recorded, f) -> None:
        decision = decide(decl, recorded, f, dir_exists=True)
        if decision.state is PackageState.STALE and decision.action is RealizeAction.REALIZE:
            assert f.auto_update and f.package_auto_update
