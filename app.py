import streamlit as st
import pandas as pd
from datetime import date

from adamas_calc.backend_logic import (
    FutureSemester,
    compute_cgpa,
    compute_sgpa,
    grade_distribution,
    grade_for_marks,
    grade_table,
    parse_number,
    percentage_from_input,
    project_cgpa,
    projection_frame,
    required_sgpa,
    sgpa_band_label,
)
from adamas_calc.config import CONFIG
from adamas_calc.io_csv import (
    history_csv,
    history_frame,
    parse_semesters,
    parse_subjects,
    read_csv_upload,
    validate_semesters_csv,
    validate_subjects_csv,
)
from adamas_calc.logger import get_logger
from adamas_calc.records import (
    RecordStore,
    cgpa_history_entry,
    history_entries,
    make_profile,
    percentage_history_entry,
    profiles,
    selection_locked,
    sgpa_history_entry,
    toggle_selection,
)

log = get_logger("app")

# ------------------------
# Streamlit UI
# ------------------------

st.set_page_config(
    page_title="Adamas University SGPA / CGPA Calculator",
    page_icon="🎓",
    layout="wide",
)

st.title("🎓 Adamas University SGPA / CGPA Calculator")
st.write(
    "Calculate your SGPA from subject marks, your CGPA from semester results, "
    "convert CGPA to a percentage, find the SGPA you need for a target CGPA "
    "and project your CGPA over the coming semesters."
)

history_store = RecordStore(st.session_state, CONFIG.HISTORY_KEY)
profile_store = RecordStore(st.session_state, CONFIG.PROFILES_KEY)


def celebrate(result: float, label: str) -> None:
    if result >= CONFIG.CELEBRATION_SGPA:
        st.balloons()
        st.success(f"🎉 {sgpa_band_label(result)} performance! You achieved an {label} of {result:.2f}!")


def upload_seed(uploaded, default, validate):
    """Table to seed a data editor with, plus an error message if the upload was bad."""
    if uploaded is None:
        return default, None
    try:
        return validate(read_csv_upload(uploaded)), None
    except Exception as e:
        log.warning("Rejected CSV upload %s: %s", getattr(uploaded, "name", "?"), e)
        return default, str(e)


(
    tab_sgpa,
    tab_cgpa,
    tab_pct,
    tab_target,
    tab_predict,
    tab_history,
    tab_profiles,
    tab_grades,
) = st.tabs(
    ["SGPA", "CGPA", "Percentage", "Target", "Prediction", "History", "Profiles", "Grade Table"]
)

# ------------------------
# SGPA
# ------------------------
with tab_sgpa:
    st.subheader("SGPA Calculator")

    subjects_csv = st.file_uploader(
        "Optionally upload subjects CSV (Name, Marks, Credits)",
        type=["csv"],
        key="subjects_csv",
    )
    default_subjects = pd.DataFrame(
        [{"Name": "", "Marks": 90.0, "Credits": float(CONFIG.DEFAULT_SUBJECT_CREDITS)}]
    )
    subjects_seed, subjects_error = upload_seed(subjects_csv, default_subjects, validate_subjects_csv)
    if subjects_error:
        st.error(f"Subjects CSV error: {subjects_error}")

    with st.form("sgpa_form"):
        subjects_df = st.data_editor(
            subjects_seed,
            key="subjects_df",
            num_rows="dynamic",
            use_container_width=True,
            column_config={
                "Name": st.column_config.TextColumn("Subject name (optional)"),
                "Marks": st.column_config.NumberColumn("Marks", min_value=0, max_value=100, step=1),
                "Credits": st.column_config.NumberColumn("Credits", min_value=1, max_value=10, step=1),
            },
        )
        sgpa_submitted = st.form_submit_button("Calculate SGPA", type="primary")

    if sgpa_submitted:
        subjects = parse_subjects(subjects_df)
        if len(subjects) == 0:
            st.warning("Please enter at least one subject (marks + credits).")
        else:
            sgpa = compute_sgpa(subjects)
            history_store.append(sgpa_history_entry(subjects, sgpa))
            st.session_state["last_sgpa"] = sgpa
            st.session_state["last_subjects"] = subjects
            celebrate(sgpa, "SGPA")

    if "last_sgpa" in st.session_state:
        subjects = st.session_state["last_subjects"]
        c1, c2 = st.columns(2)
        with c1:
            st.metric("Your SGPA", f"{st.session_state['last_sgpa']:.2f}")
            st.dataframe(
                pd.DataFrame(
                    [
                        {
                            "Subject": s.name or f"Subject {i + 1}",
                            "Marks": s.marks,
                            "Credits": s.credits,
                            "Grade": "{} ({})".format(*grade_for_marks(s.marks)),
                        }
                        for i, s in enumerate(subjects)
                    ]
                ),
                use_container_width=True,
                hide_index=True,
            )
        with c2:
            st.markdown("**Grade distribution**")
            st.bar_chart(pd.Series(grade_distribution(subjects), name="Subjects"))

# ------------------------
# CGPA
# ------------------------
with tab_cgpa:
    st.subheader("CGPA Calculator")

    semesters_csv = st.file_uploader(
        "Optionally upload semesters CSV (SGPA, Credits)",
        type=["csv"],
        key="semesters_csv",
    )
    default_semesters = pd.DataFrame(
        [{"SGPA": 0.0, "Credits": float(CONFIG.DEFAULT_SEMESTER_CREDITS)}]
    )
    semesters_seed, semesters_error = upload_seed(semesters_csv, default_semesters, validate_semesters_csv)
    if semesters_error:
        st.error(f"Semesters CSV error: {semesters_error}")

    with st.form("cgpa_form"):
        semesters_df = st.data_editor(
            semesters_seed,
            key="semesters_df",
            num_rows="dynamic",
            use_container_width=True,
            column_config={
                "SGPA": st.column_config.NumberColumn("SGPA", min_value=0.0, max_value=10.0, step=0.01, format="%.2f"),
                "Credits": st.column_config.NumberColumn("Credits", min_value=1, max_value=50, step=1),
            },
        )
        cgpa_submitted = st.form_submit_button("Calculate CGPA", type="primary")

    if cgpa_submitted:
        semesters = parse_semesters(semesters_df)
        if len(semesters) == 0:
            st.warning("Please enter at least one semester (SGPA + credits).")
        else:
            cgpa = compute_cgpa(semesters)
            history_store.append(cgpa_history_entry(semesters, cgpa))
            st.session_state["last_cgpa"] = cgpa

    if "last_cgpa" in st.session_state:
        st.metric("Your CGPA", f"{st.session_state['last_cgpa']:.2f}")

# ------------------------
# Percentage
# ------------------------
with tab_pct:
    st.subheader("Percentage Calculator")
    st.caption("Convert your CGPA to percentage using the formula: (CGPA - 0.5) × 10")

    with st.form("percentage_form"):
        cgpa_text = st.text_input("Your CGPA", placeholder="e.g., 8.5")
        pct_submitted = st.form_submit_button("Convert", type="primary")

    if pct_submitted:
        percentage = percentage_from_input(cgpa_text)
        # out-of-range input leaves the previous result on screen
        if percentage is not None:
            cgpa_value = parse_number(cgpa_text)
            history_store.append(percentage_history_entry(cgpa_value, percentage))
            st.session_state["last_percentage"] = (cgpa_value, percentage)

    if "last_percentage" in st.session_state:
        cgpa_value, percentage = st.session_state["last_percentage"]
        st.metric("Percentage", f"{percentage:.2f}%")
        st.caption(f"Formula: ({cgpa_value:g} - 0.5) × 10 = {percentage:.2f}%")

# ------------------------
# Target
# ------------------------
with tab_target:
    st.subheader("GPA Target Calculator")

    with st.form("target_form"):
        t1, t2 = st.columns(2)
        with t1:
            current_text = st.text_input("Current CGPA", placeholder="e.g., 7.5")
            target_text = st.text_input("Target CGPA", placeholder="e.g., 8.0")
        with t2:
            completed_text = st.text_input("Completed credits", placeholder="e.g., 80")
            upcoming_text = st.text_input("Upcoming semester credits", placeholder="e.g., 24")
        target_submitted = st.form_submit_button("Calculate Required SGPA", type="primary")

    if target_submitted:
        st.session_state["last_target"] = required_sgpa(
            current_text, completed_text, target_text, upcoming_text
        )

    if "last_target" in st.session_state:
        result = st.session_state["last_target"]
        if result.achievable:
            st.success(result.message)
        else:
            st.error(result.message)

    st.caption(
        "This calculator determines the SGPA you need in your upcoming semester to achieve "
        "your target CGPA."
    )

# ------------------------
# Prediction
# ------------------------
with tab_predict:
    st.subheader("CGPA Prediction")

    with st.form("prediction_form"):
        p1, p2 = st.columns(2)
        with p1:
            predict_cgpa = st.number_input("Current CGPA", min_value=0.0, max_value=10.0, value=0.0, step=0.01)
        with p2:
            predict_credits = st.number_input("Completed credits", min_value=0, value=0, step=1)

        future_df = st.data_editor(
            pd.DataFrame(
                [{"Semester": "Semester 1", "Expected SGPA": 8.0, "Credits": CONFIG.DEFAULT_SEMESTER_CREDITS}]
            ),
            key="future_df",
            num_rows="dynamic",
            use_container_width=True,
            column_config={
                "Expected SGPA": st.column_config.NumberColumn(min_value=0.0, max_value=10.0, step=0.1, format="%.1f"),
                "Credits": st.column_config.NumberColumn(min_value=1, max_value=30, step=1),
            },
        )
        predict_submitted = st.form_submit_button("Predict CGPA", type="primary")

    if predict_submitted:
        future = [
            FutureSemester(
                id=str(i),
                name=str(row["Semester"]) if not pd.isna(row["Semester"]) else f"Semester {i + 1}",
                expected_sgpa=float(row["Expected SGPA"]),
                credits=float(row["Credits"]),
            )
            for i, row in future_df.reset_index(drop=True).iterrows()
            if not pd.isna(row["Expected SGPA"]) and not pd.isna(row["Credits"])
        ]
        st.session_state["last_projection"] = project_cgpa(predict_cgpa, predict_credits, future)

    if "last_projection" in st.session_state:
        projection = st.session_state["last_projection"]
        n_future = len(projection.trajectory) - 1
        st.metric(
            "Predicted CGPA",
            f"{projection.final_cgpa:.2f}",
            help=f"After {n_future} more semester{'s' if n_future != 1 else ''}",
        )
        frame = projection_frame(projection)
        st.line_chart(frame, x="Semester", y="CGPA")
        st.dataframe(frame, use_container_width=True, hide_index=True)
        celebrate(projection.final_cgpa, "predicted CGPA")

# ------------------------
# History
# ------------------------
with tab_history:
    st.subheader("Calculation History")
    entries = history_entries(history_store)

    if len(entries) == 0:
        st.info("No calculations yet. Results from the SGPA, CGPA and Percentage tabs appear here.")
    else:
        # newest first
        st.dataframe(history_frame(entries[::-1]), use_container_width=True, hide_index=True)
        h1, h2 = st.columns([1, 1])
        with h1:
            st.download_button(
                "Export CSV",
                data=history_csv(entries),
                file_name=f"adamas-calculator-history-{date.today().isoformat()}.csv",
                mime="text/csv",
            )
        with h2:
            if st.button("Clear history"):
                history_store.clear()
                st.rerun()

# ------------------------
# Profiles
# ------------------------
with tab_profiles:
    st.subheader("Semester Profiles")

    with st.form("profile_form", clear_on_submit=True):
        f1, f2, f3, f4 = st.columns(4)
        with f1:
            profile_name = st.text_input("Semester name")
        with f2:
            profile_sgpa = st.text_input("SGPA")
        with f3:
            profile_credits = st.text_input("Credits")
        with f4:
            profile_subjects = st.text_input("Subjects")
        profile_submitted = st.form_submit_button("Save profile")

    if profile_submitted:
        profile = make_profile(profile_name, profile_sgpa, profile_credits, profile_subjects)
        if profile is not None:
            profile_store.append(profile)

    saved = profiles(profile_store)
    selected = st.session_state.get("selected_profiles", [])

    if len(saved) == 0:
        st.info("No saved profiles yet.")
    else:
        st.caption(f"Select up to {CONFIG.COMPARE_LIMIT} to compare")
        for profile in saved:
            c1, c2, c3 = st.columns([6, 1, 1])
            with c1:
                checked = st.checkbox(
                    f"**{profile.name}**: {profile.sgpa:.2f} "
                    f"({profile.subjects} subjects • {profile.credits} credits • {profile.created_at})",
                    value=profile.id in selected,
                    key=f"select_{profile.id}",
                    disabled=selection_locked(selected, profile.id, CONFIG.COMPARE_LIMIT),
                )
                if checked != (profile.id in selected):
                    selected = toggle_selection(selected, profile.id, CONFIG.COMPARE_LIMIT)
            with c2:
                st.caption(sgpa_band_label(profile.sgpa))
            with c3:
                if st.button("Delete", key=f"delete_{profile.id}"):
                    profile_store.delete(profile.id)
                    selected = [pid for pid in selected if pid != profile.id]
                    st.session_state["selected_profiles"] = selected
                    st.rerun()

        st.session_state["selected_profiles"] = selected

        comparison = [p for p in saved if p.id in selected]
        if len(comparison) >= 2:
            st.markdown("**Comparison**")
            st.bar_chart(pd.DataFrame({"SGPA": [p.sgpa for p in comparison]}, index=[p.name for p in comparison]))

# ------------------------
# Grade table
# ------------------------
with tab_grades:
    st.subheader("Grading System")
    st.dataframe(grade_table(), use_container_width=True, hide_index=True)

# To run:
# streamlit run app.py
