import json
import threading
import time
from datetime import datetime

import streamlit as st

from config import Settings, build_orchestrator, configure_logging
from pipeline_errors import InvalidArgument
from template_catalog import default_catalog
from template_generator import generate_all_templates, get_template_stats

st.set_page_config(
    page_title="Invitation Template Generator",
    layout="wide"
)

settings = Settings()
configure_logging(settings.LOG_LEVEL)
catalog = default_catalog()

st.title("Invitation Template Generator")
st.markdown("""
Generate invitation background templates at catalog scale. Pick the categories to cover,
preview the plan and cost, then run with AI artwork or with free gradient placeholders.
""")

if 'results' not in st.session_state:
    st.session_state.results = []
if 'seeded_templates' not in st.session_state:
    st.session_state.seeded_templates = []
if 'cancel_event' not in st.session_state:
    st.session_state.cancel_event = threading.Event()
if 'run_count' not in st.session_state:
    st.session_state.run_count = 0


with st.sidebar:
    st.subheader("Generation Settings")
    selected_categories = st.multiselect(
        "Categories",
        options=catalog.category_keys,
        default=catalog.category_keys[:1],
        format_func=lambda key: catalog.get_category(key).display_name
    )
    styles_per_category = st.slider(
        "Styles per subcategory", 1, len(catalog.styles), settings.STYLES_PER_CATEGORY
    )
    use_ai = st.toggle(
        "Use AI artwork",
        value=False,
        help="Off renders gradient placeholders locally at no cost"
    )
    batch_size = st.number_input("Batch size", min_value=1, value=settings.BATCH_SIZE)
    delay_between_batches = st.number_input(
        "Delay between batches (s)", min_value=0.0, value=settings.DELAY_BETWEEN_BATCHES
    )

config = settings.generation_config(
    categories=selected_categories,
    styles_per_category=styles_per_category,
    use_ai_synthesis=use_ai,
    batch_size=int(batch_size),
    delay_between_batches=float(delay_between_batches),
)

tab_generate, tab_seed = st.tabs(["AI Pipeline", "Catalog Seeding"])

with tab_generate:
    col1, col2 = st.columns([2, 1])

    orchestrator = build_orchestrator(settings, cancel_event=st.session_state.cancel_event)

    with col2:
        st.subheader("Plan")
        if selected_categories:
            plan = orchestrator.get_generation_plan(config)
            st.metric("Templates", plan.total_templates)
            st.markdown(f"""
            **Categories**: {plan.categories}
            **Subcategories**: {plan.subcategories}
            **Styles per subcategory**: {plan.styles_per_subcategory}
            """)
            if use_ai:
                st.markdown(f"""
                **Estimated cost**: ${plan.estimated_cost.total_cost:,.2f}
                **Estimated time**: {plan.estimated_cost.estimated_wall_clock}
                """)
                st.caption("Planning estimate only, not a bill.")
        else:
            st.info("Select at least one category")

        if st.session_state.run_count > 0:
            st.metric("Runs This Session", st.session_state.run_count)

    with col1:
        st.subheader("Run")
        col_btn1, col_btn2 = st.columns([1, 1])
        with col_btn1:
            run_button = st.button(
                "Generate Templates", type="primary", use_container_width=True,
                disabled=not selected_categories
            )
        with col_btn2:
            if st.button("Stop", use_container_width=True):
                st.session_state.cancel_event.set()

        if run_button:
            if use_ai and orchestrator.synthesis is None:
                st.error("AI artwork needs AI_INTEGRATIONS_GEMINI_API_KEY. Turn off AI artwork to render placeholders.")
                st.stop()

            progress_bar = st.progress(0)
            status_text = st.empty()

            def update_progress(progress):
                progress_value = min(1.0, max(0.0, progress.completed / progress.total)) if progress.total > 0 else 0.0
                progress_bar.progress(progress_value)
                status_text.text(
                    f"{progress.current_category} / {progress.current_subcategory}: "
                    f"{progress.completed}/{progress.total} done, {progress.failed} failed"
                )

            start_time = time.time()
            try:
                results = orchestrator.generate_all_templates(config, on_progress=update_progress)
            except InvalidArgument as e:
                st.error(f"Invalid generation settings: {str(e)}")
                st.stop()

            elapsed_time = time.time() - start_time
            st.session_state.results = results
            st.session_state.run_count += 1
            progress_bar.empty()
            status_text.empty()

            failed = sum(1 for r in results if not r.success)
            if failed:
                st.warning(f"Generated {len(results) - failed} templates in {elapsed_time:.1f} seconds, {failed} failed")
            else:
                st.success(f"Generated {len(results)} templates in {elapsed_time:.1f} seconds!")

    results = st.session_state.results
    if results:
        st.divider()
        st.subheader("Results")

        artifacts = [r.to_artifact() for r in results if r.success]
        thumbnails = [a for a in artifacts if a.thumbnail_url.startswith("http")][:12]
        if thumbnails:
            gallery = st.columns(4)
            for i, artifact in enumerate(thumbnails):
                with gallery[i % 4]:
                    st.image(artifact.thumbnail_url, caption=f"{artifact.subcategory} / {artifact.style}")

        st.dataframe(
            [
                {
                    "template_id": r.template_id,
                    "success": r.success,
                    "style": r.metadata.style if r.metadata else "",
                    "thumbnail_url": r.thumbnail_url or "",
                    "error": r.error or "",
                }
                for r in results
            ],
            use_container_width=True
        )

        st.download_button(
            label="Download Artifact Records (JSON)",
            data=json.dumps([a.model_dump() for a in artifacts], indent=2),
            file_name=f"template_artifacts_{datetime.now().strftime('%Y%m%d_%H%M%S')}.json",
            mime="application/json",
            use_container_width=True
        )

with tab_seed:
    st.subheader("Seed Catalog Metadata")
    st.markdown("Expand every category to its target count instantly. No images, no network calls.")

    if st.button("Generate Catalog", use_container_width=True):
        st.session_state.seeded_templates = generate_all_templates(catalog)

    templates = st.session_state.seeded_templates
    if templates:
        stats = get_template_stats(templates)
        col_a, col_b, col_c = st.columns(3)
        col_a.metric("Total", stats.total)
        col_b.metric("Premium", stats.premium)
        col_c.metric("Free", stats.free)

        with st.expander("By Category"):
            st.bar_chart(stats.by_category)
        with st.expander("By Style"):
            st.bar_chart(stats.by_style)

        st.download_button(
            label="Download Catalog (JSON)",
            data=json.dumps([t.model_dump() for t in templates], indent=2),
            file_name=f"template_catalog_{datetime.now().strftime('%Y%m%d_%H%M%S')}.json",
            mime="application/json",
            use_container_width=True
        )

st.markdown("---")
st.markdown(
    '<div style="text-align: center; color: #666;">Print format: 148 mm square at 300 DPI (1748 x 1748 px)</div>',
    unsafe_allow_html=True
)
