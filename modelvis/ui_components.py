"""Shared UI components: prose boxes, quizzes, exercises, navigation."""
import streamlit as st

CHAPTER_TITLE = "Modelling for Visualisation"


def section_header(number, title):
    """Render a section header under the chapter title."""
    st.caption(CHAPTER_TITLE)
    st.title(f"{number}. {title}")
    st.divider()


def concept_box(title, content):
    """Render a highlighted concept/theory box."""
    st.markdown(f"""
<div style="background-color: #EBF5FB; padding: 20px; border-radius: 10px; border-left: 5px solid #2E86C1; margin: 10px 0;">
<h4 style="color: #2E86C1; margin-top: 0;">{title}</h4>
<p style="color: #1B4F72;">{content}</p>
</div>
""", unsafe_allow_html=True)


def formula_box(title, formula, explanation=""):
    """Render a formula with explanation."""
    st.markdown(f"**{title}**")
    st.latex(formula)
    if explanation:
        st.caption(explanation)


def insight_box(text):
    """Render a key insight callout."""
    st.info(f"**Key Insight:** {text}")


def warning_box(text):
    """Render a warning/common mistake box."""
    st.warning(f"**Common Mistake:** {text}")


def code_example(code, language="python"):
    """Render the code behind the section in a collapsible block."""
    with st.expander("Show Code"):
        st.code(code.strip(), language=language)


def quiz(question, options, correct_idx, explanation="", key="quiz"):
    """Render a multiple-choice question. Returns True/False once answered, else None."""
    st.subheader("Quick Quiz")
    answer = st.radio(question, options, key=key, index=None)
    if answer is None:
        return None
    correct = options.index(answer) == correct_idx
    if correct:
        st.success("Correct!")
    else:
        st.error(f"Not quite. The correct answer is: **{options[correct_idx]}**")
    if explanation:
        st.caption(explanation)
    return correct


def exercises(items):
    """Render a numbered list of end-of-section exercises."""
    st.subheader("Exercises")
    for i, item in enumerate(items, start=1):
        st.markdown(f"{i}. {item}")


def takeaways(points):
    """Render key takeaways as a list."""
    st.subheader("Key Takeaways")
    for p in points:
        st.markdown(f"- {p}")


def navigation(prev_label=None, next_label=None, prev_page=None, next_page=None):
    """Render prev/next navigation links."""
    col1, _, col3 = st.columns([1, 2, 1])
    with col1:
        if prev_label:
            # the entry script sits at the root, every other page under pages/
            target = f"pages/{prev_page}" if prev_page != "app.py" else prev_page
            st.page_link(target, label=f"← {prev_label}")
    with col3:
        if next_label:
            st.page_link(f"pages/{next_page}", label=f"{next_label} →")


def load_or_stop(loader):
    """Call a dataset loader; show the fix and stop the page if the data is missing."""
    try:
        return loader()
    except FileNotFoundError as exc:
        st.error(str(exc))
        st.stop()
