"""
Streamlit Frontend for LifePath

Personal development tracker: onboarding quiz, dashboard, and one page
each for goals, learnings, dreams and finances.

DESIGN PRINCIPLES:
1. Nothing is shown before login
2. New users see the quiz once; they can always skip it
3. Clear error messages in simple language
4. Visual feedback for all operations

All state lives in the core components; the UI only renders it and
forwards clicks.
"""

import asyncio
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional

import streamlit as st
from pydantic import ValidationError

from lifepath.auth import identity_from_claims
from lifepath.config import get_settings, validate_all_settings
from lifepath.models.profile import UserIdentity
from lifepath.models.quiz import QuestionKind, QuizStatus
from lifepath.models.records import (
    DevelopmentArea,
    DreamCategory,
    DreamStatus,
    EntryType,
    FinanceCategory,
    GoalStatus,
    LearningStatus,
    RecordCollection,
)
from lifepath.orchestrator import create_app_components, OnboardingFlow
from lifepath.dashboard import DashboardAggregator
from lifepath.quiz import QuizController
from lifepath.records import RecordNotFoundError, RecordService
from lifepath.services.storage import StorageError


# Page configuration
st.set_page_config(
    page_title="LifePath",
    page_icon="🌱",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
    }
</style>
""", unsafe_allow_html=True)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components():
    """Get or create application components (cached)."""
    try:
        return create_app_components(use_storage=True)
    except Exception as e:
        st.error(f"Failed to initialize: {e}")
        return create_app_components(use_storage=False)


def label(value) -> str:
    return value.value.replace("_", " ").title()


def money(amount: Decimal) -> str:
    return f"{get_settings().app.currency_symbol} {amount:,.2f}"


def current_identity() -> Optional[UserIdentity]:
    if not st.user.is_logged_in:
        return None
    return identity_from_claims(st.user.to_dict())


def render_login_page():
    st.title("🌱 LifePath")
    st.markdown("Track your goals, learnings, dreams and finances in one place.")
    if st.button("Log in", type="primary"):
        st.login()


def main():
    """Main application entry point."""
    identity = current_identity()
    if identity is None:
        render_login_page()
        st.stop()

    onboarding, dashboard, records, _ = get_components()

    # Onboarding gate: checked once per session
    if "needs_onboarding" not in st.session_state:
        st.session_state.needs_onboarding = run_async(
            onboarding.needs_onboarding(identity)
        )
    if st.session_state.needs_onboarding:
        render_quiz_page(onboarding, identity)
        return

    st.sidebar.title("🌱 LifePath")
    st.sidebar.markdown(f"Hello, **{identity.first_name}**")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Dashboard", "🎯 Goals", "📚 Learning", "✨ Dreams", "💰 Finances", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    if st.sidebar.button("Log out"):
        st.session_state.clear()
        st.logout()

    if page == "📊 Dashboard":
        render_dashboard_page(dashboard, identity)
    elif page == "🎯 Goals":
        render_goals_page(records, identity)
    elif page == "📚 Learning":
        render_learnings_page(records, identity)
    elif page == "✨ Dreams":
        render_dreams_page(records, identity)
    elif page == "💰 Finances":
        render_finances_page(records, identity)
    elif page == "⚙️ Settings":
        render_settings_page()


# =============================================================================
# ONBOARDING QUIZ
# =============================================================================

def render_quiz_page(onboarding: OnboardingFlow, identity: UserIdentity):
    """Render the current quiz question."""
    if "quiz" not in st.session_state:
        st.session_state.quiz = run_async(onboarding.start_quiz(identity))
    quiz: QuizController = st.session_state.quiz

    if quiz.is_terminal:
        finish_quiz(quiz)
        return

    question = quiz.current_question
    answer = quiz.current_answer

    st.progress(int(quiz.progress_percent), text=f"Question {quiz.position + 1} of {len(quiz.catalog)}")
    st.title(question.title)
    if question.subtitle:
        st.markdown(question.subtitle)

    labels = {option.value: option.label for option in question.options}
    submitted = None

    if question.kind == QuestionKind.SINGLE_CHOICE:
        values = list(labels)
        chosen = answer.value.choice if answer else None
        submitted = st.radio(
            "Choose one",
            options=values,
            index=values.index(chosen) if chosen in labels else None,
            format_func=labels.get,
            label_visibility="collapsed",
            key=f"quiz_{question.id}",
        )
    elif question.kind == QuestionKind.MULTIPLE_CHOICE:
        selected = answer.value.choices if answer else frozenset()
        submitted = [
            value for value, text in labels.items()
            if st.checkbox(text, value=value in selected, key=f"quiz_{question.id}_{value}")
        ]
    elif question.kind == QuestionKind.FREE_TEXT:
        submitted = st.text_area(
            "Your answer",
            value=answer.value.text if answer else "",
            placeholder=question.placeholder,
            label_visibility="collapsed",
            key=f"quiz_{question.id}",
        )

    st.markdown("---")
    col1, col2, col3 = st.columns(3)

    with col1:
        if st.button("⬅️ Back", disabled=quiz.is_first):
            quiz.retreat()
            st.rerun()

    with col2:
        if st.button("Skip for now"):
            run_async(quiz.skip())
            st.rerun()

    with col3:
        next_label = "Start" if question.kind == QuestionKind.INTRO else (
            "Finish" if quiz.is_last else "Next ➡️"
        )
        if st.button(next_label, type="primary"):
            if question.kind != QuestionKind.INTRO and submitted is not None:
                quiz.answer(submitted)
            if quiz.is_last and quiz.is_answered():
                with st.spinner("Saving your answers..."):
                    run_async(quiz.advance())
                st.rerun()
            elif run_async(quiz.advance()):
                st.rerun()


def finish_quiz(quiz: QuizController):
    """Leave the quiz for the dashboard, whatever the save outcome."""
    if quiz.status == QuizStatus.DONE and quiz.persist_result and not quiz.persist_result.ok:
        st.session_state.quiz_save_warning = True
    st.session_state.needs_onboarding = False
    del st.session_state.quiz
    st.rerun()


# =============================================================================
# DASHBOARD
# =============================================================================

def render_dashboard_page(dashboard: DashboardAggregator, identity: UserIdentity):
    """Render stat cards and area progress."""
    st.title(f"Welcome back, {identity.first_name}!")

    if st.session_state.pop("quiz_save_warning", False):
        st.warning(
            "We couldn't save your quiz answers this time. "
            "Everything else works as usual."
        )

    with st.spinner("Loading your dashboard..."):
        stats = run_async(dashboard.load(identity))

    if stats.is_partial:
        missing = ", ".join(label(c) for c in stats.failed_collections)
        st.warning(f"Some data could not be loaded: {missing}")

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("🎯 Active goals", stats.goals_count - stats.completed_goals)
    with col2:
        st.metric("📚 Learning", stats.learnings_count)
    with col3:
        st.metric("✨ Dreams", stats.dreams_count)
    with col4:
        st.metric("💰 Balance", money(stats.balance))

    st.markdown("---")
    st.markdown("### Development areas")

    cols = st.columns(3)
    for idx, (area, progress) in enumerate(stats.area_progress.items()):
        with cols[idx % 3]:
            st.markdown(f"**{label(area)}**")
            st.progress(progress, text=f"{progress}%")


# =============================================================================
# RECORD PAGES
# =============================================================================

def save(action, success_message: str):
    """Run a record action and report the outcome."""
    try:
        run_async(action)
    except ValidationError as e:
        st.error(f"Please check the form: {e.errors()[0]['msg']}")
        return
    except (StorageError, RecordNotFoundError) as e:
        st.error(f"Could not save: {e}")
        return
    st.success(success_message)
    st.rerun()


def render_goals_page(records: RecordService, identity: UserIdentity):
    st.title("🎯 Goals")

    with st.form("new_goal", clear_on_submit=True):
        title = st.text_input("Title")
        description = st.text_area("Description")
        category = st.selectbox("Area", list(DevelopmentArea), format_func=label)
        target = st.date_input("Target date", value=None)
        if st.form_submit_button("Create goal", type="primary"):
            save(
                records.create_goal(identity, title, description, category, target),
                "Goal created!",
            )

    for goal in run_async(records.list_goals(identity)):
        with st.container(border=True):
            st.markdown(f"**{goal.title}** · {label(goal.category)}")
            if goal.description:
                st.caption(goal.description)
            st.progress(goal.progress, text=f"{goal.progress}%")
            col1, col2 = st.columns(2)
            with col1:
                if goal.status == GoalStatus.ACTIVE and st.button("+ Progress", key=f"goal_up_{goal.id}"):
                    save(records.advance_progress(identity, RecordCollection.GOALS, goal.id), "Progress updated")
            with col2:
                if st.button("🗑️ Delete", key=f"goal_del_{goal.id}"):
                    save(records.delete_record(identity, RecordCollection.GOALS, goal.id), "Goal deleted")


def render_learnings_page(records: RecordService, identity: UserIdentity):
    st.title("📚 Learning")

    with st.form("new_learning", clear_on_submit=True):
        skill = st.text_input("Skill")
        description = st.text_area("Description")
        if st.form_submit_button("Add skill", type="primary"):
            save(records.create_learning(identity, skill, description), "Skill added!")

    for learning in run_async(records.list_learnings(identity)):
        with st.container(border=True):
            st.markdown(f"**{learning.skill_name}** · {label(learning.status)}")
            st.progress(learning.progress, text=f"{learning.progress}%")
            if learning.status == LearningStatus.IN_PROGRESS:
                col1, col2 = st.columns(2)
                with col1:
                    if st.button("+ Progress", key=f"learn_up_{learning.id}"):
                        save(records.advance_progress(identity, RecordCollection.LEARNINGS, learning.id), "Progress updated")
                with col2:
                    if st.button("✅ Completed", key=f"learn_done_{learning.id}"):
                        save(records.complete_learning(identity, learning.id), "Well done!")
            if st.button("🗑️ Delete", key=f"learn_del_{learning.id}"):
                save(records.delete_record(identity, RecordCollection.LEARNINGS, learning.id), "Skill deleted")


def render_dreams_page(records: RecordService, identity: UserIdentity):
    st.title("✨ Dreams")

    with st.form("new_dream", clear_on_submit=True):
        title = st.text_input("Dream")
        description = st.text_area("Description")
        category = st.selectbox("Category", list(DreamCategory), format_func=label)
        if st.form_submit_button("Add dream", type="primary"):
            save(records.create_dream(identity, title, description, category), "Dream added!")

    for dream in run_async(records.list_dreams(identity)):
        with st.container(border=True):
            st.markdown(f"**{dream.title}** · {label(dream.category)} · {label(dream.status)}")
            if dream.description:
                st.caption(dream.description)
            if dream.status == DreamStatus.PENDING and st.button("🎉 Achieved", key=f"dream_ok_{dream.id}"):
                save(records.mark_dream_achieved(identity, dream.id), "Congratulations!")
            if st.button("🗑️ Delete", key=f"dream_del_{dream.id}"):
                save(records.delete_record(identity, RecordCollection.DREAMS, dream.id), "Dream deleted")


def render_finances_page(records: RecordService, identity: UserIdentity):
    st.title("💰 Finances")

    summary = run_async(records.finance_summary(identity))
    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Income", money(summary.total_income))
    with col2:
        st.metric("Expenses", money(summary.total_expense))
    with col3:
        st.metric("Balance", money(summary.balance))

    with st.form("new_entry", clear_on_submit=True):
        entry_type = st.selectbox("Type", list(EntryType), format_func=label)
        amount = st.text_input("Amount", placeholder="0.00")
        description = st.text_input("Description")
        category = st.selectbox("Category", list(FinanceCategory), format_func=label)
        entry_date = st.date_input("Date", value=date.today())
        if st.form_submit_button("Add entry", type="primary"):
            try:
                value = Decimal(amount.replace(",", "."))
            except InvalidOperation:
                st.error("Please enter the amount as a number, e.g. 12.50")
            else:
                save(
                    records.add_finance_entry(identity, entry_type, value, description, category, entry_date),
                    "Entry added!",
                )

    for entry in run_async(records.list_finances(identity)):
        sign = "+" if entry.type == EntryType.INCOME else "-"
        col1, col2 = st.columns([5, 1])
        with col1:
            st.markdown(
                f"{entry.entry_date:%d/%m/%Y} · **{entry.description or label(entry.category)}** · "
                f"{sign}{money(entry.amount)}"
            )
        with col2:
            if st.button("🗑️", key=f"fin_del_{entry.id}"):
                save(records.delete_record(identity, RecordCollection.FINANCES, entry.id), "Entry deleted")


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    status = validate_all_settings()

    services = [
        ("Google Sheets (Storage)", "google_sheets"),
        ("Quiz", "quiz"),
        ("Dashboard", "dashboard"),
        ("Application", "app"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - OK")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file with your settings. "
        "See `.env.example` for the available variables."
    )


if __name__ == "__main__":
    main()
