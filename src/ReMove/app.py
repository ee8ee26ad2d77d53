"""Streamlit UI for ReMove.

Streamlit reruns the script once per committed widget change rather than
per keystroke, so the configure step validates the submitted value
directly through ``Workflow.validate_destination``. The debounced
``DestinationResolver`` (``Workflow.enter_destination``) serves front ends
that stream raw keystrokes from an event loop.
"""

from __future__ import annotations

import logging

import streamlit as st

from ReMove.account_parser import AccountParseError, parse_account_input
from ReMove.config import Settings, configure_logging
from ReMove.credential_store import CredentialStore
from ReMove.errors import ReMoveError, WorkflowError
from ReMove.inventory import OWNER_CHOICES, VISIBILITY_CHOICES, filter_repositories
from ReMove.models import WorkflowStep
from ReMove.workflow import Workflow

logger = logging.getLogger(__name__)

_STEP_LABELS = {
    WorkflowStep.AUTH: "Authenticate",
    WorkflowStep.SELECT: "Select",
    WorkflowStep.CONFIGURE: "Configure",
    WorkflowStep.CONFIRM: "Confirm",
    WorkflowStep.TRANSFER: "Transfer",
}


def _qp(key: str, default: str = "") -> str:
    """Read a query parameter, returning *default* if absent."""
    params = st.query_params
    return params.get(key, default)


def _workflow() -> Workflow:
    """Return the session's workflow, creating and restoring it on first use."""
    if "workflow" not in st.session_state:
        settings = Settings.from_env()
        workflow = Workflow(CredentialStore(settings.keyring_service), settings=settings)
        if workflow.restore() is not None:
            try:
                workflow.fetch_repositories()
                workflow.fetch_organizations()
                workflow.advance()
            except ReMoveError as exc:
                logger.warning("Could not load repositories for restored session: %s", exc)
        st.session_state["workflow"] = workflow
    return st.session_state["workflow"]


def main() -> None:
    configure_logging()
    st.set_page_config(
        page_title="ReMove",
        page_icon="📦",
        layout="wide",
    )
    st.title("ReMove")
    st.caption(
        "Transfer multiple GitHub repositories to another user or organization."
    )

    workflow = _workflow()
    _step_indicator(workflow.state.step)

    step = workflow.state.step
    if step is WorkflowStep.AUTH:
        _auth_step(workflow)
    elif step is WorkflowStep.SELECT:
        _select_step(workflow)
    elif step is WorkflowStep.CONFIGURE:
        _configure_step(workflow)
    elif step is WorkflowStep.CONFIRM:
        _confirm_step(workflow)
    else:
        _transfer_step(workflow)


def _step_indicator(current: WorkflowStep) -> None:
    steps = list(_STEP_LABELS)
    index = steps.index(current)
    parts = []
    for i, step in enumerate(steps):
        label = _STEP_LABELS[step]
        if i < index:
            parts.append(f"~~{label}~~")
        elif i == index:
            parts.append(f"**{label}**")
        else:
            parts.append(label)
    st.markdown(" → ".join(parts))


def _auth_step(workflow: Workflow) -> None:
    state = workflow.state
    if state.identity is not None:
        st.success(f"Signed in as **{state.identity.login}**")
        col_next, col_logout = st.columns(2)
        if col_next.button("Continue", type="primary", use_container_width=True):
            _load_inventory(workflow)
            st.rerun()
        if col_logout.button("Log out", use_container_width=True):
            workflow.logout()
            st.rerun()
        return

    st.info(
        "A personal access token with the `repo` scope is required. "
        "Transfers into organizations also need `admin:org`."
    )
    with st.form("auth"):
        token = st.text_input(
            "GitHub Token",
            value=_qp("token"),
            type="password",
            placeholder="ghp_xxxxxxxxxxxxxxxxxxxx",
        )
        submitted = st.form_submit_button("Authenticate", type="primary")

    if submitted:
        if not token.strip():
            st.error("Please enter a token.")
            return
        try:
            with st.spinner("Checking token..."):
                workflow.authenticate(token)
        except ReMoveError:
            st.error(state.error or "Authentication failed.")
            return
        _load_inventory(workflow)
        st.rerun()
    elif state.error:
        st.error(state.error)


def _load_inventory(workflow: Workflow) -> None:
    try:
        with st.spinner("Fetching repositories..."):
            workflow.fetch_repositories()
            workflow.fetch_organizations()
        workflow.advance()
    except ReMoveError as exc:
        st.error(str(exc))


def _select_step(workflow: Workflow) -> None:
    state = workflow.state
    for warning in state.warnings:
        st.warning(warning)

    col_query, col_vis, col_owner = st.columns([4, 1, 1])
    query = col_query.text_input("Search repositories", placeholder="name or description")
    visibility = col_vis.selectbox("Visibility", VISIBILITY_CHOICES)
    owner = col_owner.selectbox("Owner", OWNER_CHOICES)

    visible = filter_repositories(state.repositories, query, visibility, owner)
    if not state.repositories:
        st.warning("No repositories found for this account.")
    elif not visible:
        st.info("No repositories match your filters.")

    names = [repo.name for repo in visible]
    all_selected = bool(names) and set(names) <= set(state.selection)
    if st.button("Deselect All" if all_selected else "Select All", disabled=not names):
        workflow.select_all(names)
        st.rerun()

    for repo in visible:
        label = f"**{repo.full_name}**" + (" 🔒" if repo.is_private else "")
        if repo.description:
            label += f" — {repo.description}"
        checked = st.checkbox(
            label,
            value=repo.name in state.selection,
            key=f"repo-{repo.id}",
        )
        if checked != (repo.name in state.selection):
            workflow.toggle_repository(repo.name)

    st.caption(f"{len(state.selection)} repositories selected")
    if st.button(
        "Continue",
        type="primary",
        use_container_width=True,
        disabled=not state.selection,
    ):
        workflow.advance()
        st.rerun()


def _configure_step(workflow: Workflow) -> None:
    state = workflow.state
    kind = st.radio(
        "Transfer destination type",
        ["User account", "Organization"],
        index=1 if state.destination.is_organization else 0,
        horizontal=True,
    )
    is_org = kind == "Organization"

    if is_org and state.organizations:
        logins = [org.login for org in state.organizations]
        current = state.destination.raw_input
        raw = st.selectbox(
            "Organization",
            logins,
            index=logins.index(current) if current in logins else 0,
        )
    else:
        raw = st.text_input(
            "Organization" if is_org else "Username",
            value=state.destination.raw_input or _qp("dest"),
            placeholder="Enter GitHub username",
        )

    identity = None
    if raw.strip():
        try:
            login = parse_account_input(raw, workflow.settings.api_host)
            with st.spinner("Validating destination..."):
                identity = workflow.validate_destination(login)
        except AccountParseError as exc:
            st.error(str(exc))
        except ReMoveError as exc:
            st.error(f"Failed to validate destination: {exc}")
        else:
            if identity is None:
                st.error(f"No GitHub account named `{login}`.")
            elif is_org and not identity.is_organization:
                st.warning(f"`{identity.login}` is a user account, not an organization.")
            else:
                st.success(f"Destination: **{identity.login}**")
    workflow.set_destination(raw, is_org, identity)

    col_back, col_next = st.columns(2)
    if col_back.button("Back", use_container_width=True):
        workflow.back()
        st.rerun()
    if col_next.button(
        "Continue",
        type="primary",
        use_container_width=True,
        disabled=identity is None,
    ):
        workflow.advance()
        st.rerun()


def _confirm_step(workflow: Workflow) -> None:
    state = workflow.state
    destination = state.destination.resolved_identity
    st.error("Transfers cannot be undone from this tool. Review carefully.")
    st.subheader(f"Destination: {destination.login}")
    if destination.display_name:
        st.caption(destination.display_name)

    st.subheader(f"{len(state.selection)} repositories")
    by_name = {repo.name: repo for repo in state.repositories}
    for name in state.selection:
        repo = by_name.get(name)
        st.markdown(f"- `{repo.full_name if repo else name}`")

    confirmed = st.checkbox("I understand these repositories will change owner.")
    final = st.checkbox(
        f"I have confirmed that **{destination.login}** is the correct destination."
    )

    col_back, col_go = st.columns(2)
    if col_back.button("Back", use_container_width=True):
        workflow.back()
        st.rerun()
    if col_go.button(
        "Transfer",
        type="primary",
        use_container_width=True,
        disabled=not (confirmed and final),
    ):
        _run_transfer(workflow)
        st.rerun()


def _run_transfer(workflow: Workflow) -> None:
    total = len(workflow.state.selection)
    try:
        outcomes = workflow.start_transfer()
    except WorkflowError as exc:
        st.error(str(exc))
        return

    progress_bar = st.progress(0, text="Transferring...")
    for done, outcome in enumerate(outcomes, start=1):
        progress_bar.progress(done / max(total, 1), text=f"Transferred: {outcome.repository}")
    progress_bar.progress(1.0, text="Done!")


def _transfer_step(workflow: Workflow) -> None:
    state = workflow.state
    summary = workflow.summary()
    if summary.status == "complete":
        st.success(f"All {summary.total} repositories transferred successfully.")
    elif summary.status == "partial":
        st.warning(
            f"{summary.succeeded} of {summary.total} repositories transferred successfully."
        )
    else:
        st.error("No repositories were transferred.")

    col_ok, col_fail = st.columns(2)
    col_ok.metric("Succeeded", summary.succeeded)
    col_fail.metric("Failed", summary.failed)

    for outcome in state.results:
        if outcome.success:
            st.markdown(f"✅ `{outcome.repository}` → {outcome.new_url}")
        else:
            st.markdown(f"❌ `{outcome.repository}`: {outcome.error_message}")

    if st.button("Start Over", type="primary", use_container_width=True):
        workflow.reset()
        st.rerun()


if __name__ == "__main__":
    main()
