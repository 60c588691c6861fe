# app.py
import random

import pandas as pd
import streamlit as st

from batch_scheduler.config import SchedulerConfig, load_config
from batch_scheduler.data_loader import (
    build_batch, build_classrooms, build_committed_schedules, load_data, sessions_to_dataframe,
)
from batch_scheduler.scheduler import run_ga, run_greedy
from batch_scheduler.suggestions import generate_suggestions
from batch_scheduler.timegrid import DAYS, SLOT_STARTS, covered_slots

# --- PAGE SETUP ---
st.set_page_config(page_title="Batch Timetable Scheduler", layout="wide", initial_sidebar_state="expanded")

st.markdown("""
    <style>
    .schedule-table { width: 100%; border-collapse: collapse; font-family: Arial, sans-serif; font-size: 12px; }
    .schedule-table th { background-color: #f0f2f6; border: 1px solid #ddd; padding: 8px; text-align: center; color: #333; }
    .schedule-table td { border: 1px solid #ddd; padding: 4px; vertical-align: top; background-color: #fff; color: #000; }
    .lunch-row td { background-color: #eee; color: #888; text-align: center; font-style: italic; }
    </style>
""", unsafe_allow_html=True)


# --- HELPERS ---
def get_html_card(subject, faculty, room, kind):
    return (
        f"<div style='border:1px solid #999; margin-bottom:4px; overflow:hidden;'>"
        f"<div style='background-color:#ffffcc; padding:2px 4px; font-size:11px; font-weight:bold;'>{subject}</div>"
        f"<div style='padding:2px 4px; font-size:10px;'>{faculty} {room}"
        f"<span style='float:right; color:#666;'>({kind})</span></div>"
        f"</div>"
    )


def render_week(sessions, names):
    cells = {(slot, day): "" for slot in SLOT_STARTS for day in DAYS}
    for s in sessions:
        for slot in covered_slots(s.start_time, s.duration):
            if (slot, s.day) in cells:
                cells[(slot, s.day)] += get_html_card(
                    names.get(s.subject_id, s.subject_id), s.faculty_id, s.room_id, s.session_type
                )

    html = "<table class='schedule-table'><thead><tr><th>Hour</th>"
    html += "".join(f"<th>{d}</th>" for d in DAYS) + "</tr></thead><tbody>"
    for slot in SLOT_STARTS:
        if slot == "13:00":
            html += f"<tr class='lunch-row'><td colspan='{len(DAYS) + 1}'>12:00 - 13:00 lunch</td></tr>"
        html += f"<tr><td><b>{slot}</b></td>"
        html += "".join(f"<td>{cells[(slot, d)]}</td>" for d in DAYS) + "</tr>"
    html += "</tbody></table>"
    return html


def sidebar_config(base: SchedulerConfig) -> SchedulerConfig:
    st.sidebar.subheader("Genetic algorithm")
    data = {
        "population_size": st.sidebar.number_input("Population", 4, 500, base.population_size),
        "generations": st.sidebar.number_input("Generations", 1, 2000, base.generations),
        "mutation_rate": st.sidebar.slider("Mutation rate", 0.0, 1.0, base.mutation_rate),
        "crossover_rate": st.sidebar.slider("Crossover rate", 0.0, 1.0, base.crossover_rate),
        "elite_ratio": st.sidebar.slider("Elite ratio", 0.0, 0.5, base.elite_ratio),
        "stagnation_limit": st.sidebar.number_input("Stagnation limit", 1, 500, base.stagnation_limit),
        "block_policy": st.sidebar.selectbox(
            "Block policy", ["lab_pairs", "unit"], index=0 if base.block_policy == "lab_pairs" else 1
        ),
        "seed": st.sidebar.number_input("Seed", 0, 10**6, base.seed or 0),
    }
    merged = {**base.__dict__, **data}
    return SchedulerConfig.from_dict(merged)


# --- MAIN APP ---
def main():
    if "bundle" not in st.session_state:
        st.session_state.bundle = load_data("data")
    bundle = st.session_state.bundle

    with st.sidebar:
        st.title("Timetable Scheduler")
        batch_id = st.selectbox("Batch", bundle.batches["id"].tolist(),
                                format_func=lambda b: bundle.batches.set_index("id").at[b, "name"])
        strategy = st.radio("Strategy", ["Genetic algorithm", "Greedy heuristic"])
        st.markdown("---")
    cfg = sidebar_config(load_config("config.yaml"))

    batch = build_batch(bundle, batch_id)
    names = {s.subject_id: s.label for s in batch.subjects}

    tab_input, tab_result = st.tabs(["Input data", "Timetable"])
    with tab_input:
        st.subheader(f"{batch.name} ({batch.strength} students)")
        st.dataframe(bundle.batch_subjects[bundle.batch_subjects["batch_id"] == batch_id], use_container_width=True)
        st.subheader("Classrooms")
        st.dataframe(bundle.classrooms, use_container_width=True)
        st.subheader("Committed timetables of other batches")
        st.dataframe(bundle.committed_slots, use_container_width=True)

    with tab_result:
        if st.button("Generate timetable"):
            classrooms = build_classrooms(bundle.classrooms)
            committed = build_committed_schedules(bundle.committed_slots)
            with st.spinner("Scheduling..."):
                if strategy == "Greedy heuristic":
                    result = run_greedy(batch, classrooms, committed, cfg)
                else:
                    result = run_ga(batch, classrooms, committed, cfg, random.Random(cfg.seed))
            st.session_state.result = result

        result = st.session_state.get("result")
        if result is None:
            st.info("Choose a batch and a strategy, then generate a timetable.")
            return

        c1, c2, c3, c4 = st.columns(4)
        c1.metric("Fitness", f"{result.report.fitness:.1f}")
        c2.metric("Hard violations", result.report.hard_violations)
        c3.metric("Soft penalty", f"{result.report.soft_penalty:.1f}")
        c4.metric("Validator conflicts", result.validation.conflict_count)
        if result.shortfall:
            st.warning(f"Unscheduled hours: {result.shortfall}")
        if result.stop_reason:
            st.caption(f"{result.generations_run} generations, {result.stop_reason}")

        st.markdown(render_week(result.sessions, names), unsafe_allow_html=True)

        col_hard, col_soft = st.columns(2)
        col_hard.dataframe(pd.Series(result.report.hard_constraints, name="violations"))
        col_soft.dataframe(pd.Series(result.report.soft_constraints, name="value"))
        if result.history:
            st.line_chart(pd.DataFrame(result.history).set_index("gen")[["best_fitness", "avg_fitness"]])

        st.download_button(
            "Download schedule.csv",
            sessions_to_dataframe(result.sessions).to_csv(index=False),
            file_name="schedule.csv",
        )
        st.subheader("Suggestions")
        for tip in generate_suggestions(batch, cfg):
            st.write(f"- {tip}")


if __name__ == "__main__":
    main()
