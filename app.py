import gradio as gr

from json_timeline_extractor.config import settings
from json_timeline_extractor.handlers import (
    export_entities_handler,
    extract_handler,
    load_documents_handler,
    load_rules_handler,
    refresh_view_handler,
    save_rules_handler,
    suggest_rules_handler,
)
from json_timeline_extractor.transform import ENTITY_COLUMNS

initial_rules, initial_rules_status = load_rules_handler()

# --- UI Definition ---
with gr.Blocks(title="JSON Timeline Extractor") as demo:
    gr.Markdown("# JSON Timeline Extractor")
    gr.Markdown(
        "Upload JSON files, declare which arrays hold timeline items (or leave the rule set "
        "empty to auto-detect them), then filter the extracted entities."
    )

    # State
    documents_state = gr.State()
    entities_state = gr.State(value=[])

    with gr.Row():
        # Left Panel: Input & Rules
        with gr.Column(scale=1):
            gr.Markdown("### 1. Import")
            file_input = gr.File(label="Upload JSON Files", file_types=[".json"], file_count="multiple")
            status_msg = gr.Textbox(label="Status", interactive=False, lines=3)
            available_paths = gr.JSON(label="Available Paths")

            gr.Markdown("### 2. Extraction Rules")
            gr.Markdown("A JSON list of rules. Disable every rule (or clear the editor) to auto-detect.")
            rules_editor = gr.Code(label="Rules", language="json", value=initial_rules)
            rules_status = gr.Textbox(label="Rules Status", interactive=False, value=initial_rules_status)
            with gr.Row():
                suggest_btn = gr.Button("Suggest Rules")
                save_rules_btn = gr.Button("Save Rules")
            extract_btn = gr.Button("Extract Entities", variant="primary")

        # Right Panel: Filters & Table
        with gr.Column(scale=2):
            gr.Markdown("### 3. Filters")
            with gr.Row():
                file_selector = gr.Dropdown(label="Files", choices=[], value=[], multiselect=True)
                array_selector = gr.Dropdown(label="Arrays", choices=[], value=[], multiselect=True)
            with gr.Row():
                column_selector = gr.Dropdown(
                    label="Column",
                    choices=list(ENTITY_COLUMNS),
                    value=None,
                    allow_custom_value=True,
                )
                column_value = gr.Textbox(label="Contains")
            with gr.Row():
                range_start = gr.Textbox(label="From", placeholder="2024-01-01")
                range_end = gr.Textbox(label="To", placeholder="2024-12-31")
            refresh_btn = gr.Button("Apply Filters")

            gr.Markdown("### 4. Entities (most recent first)")
            view_status = gr.Textbox(label="View", interactive=False)
            entity_table = gr.Dataframe(label="Entities", interactive=False, wrap=True)

            gr.Markdown("### 5. Export")
            output_filename = gr.Textbox(label="Output Filename (optional)", placeholder="timeline_entities")
            export_btn = gr.Button("Export Entities")
            download_output = gr.File(label="Download Result")

    view_inputs = [
        entities_state,
        rules_editor,
        file_selector,
        array_selector,
        column_selector,
        column_value,
        range_start,
        range_end,
    ]

    file_input.upload(
        fn=load_documents_handler,
        inputs=[file_input],
        outputs=[documents_state, status_msg, file_selector, available_paths],
    )

    suggest_btn.click(
        fn=suggest_rules_handler,
        inputs=[documents_state],
        outputs=[rules_editor, rules_status],
    )

    save_rules_btn.click(
        fn=save_rules_handler,
        inputs=[rules_editor],
        outputs=[rules_status],
    )

    extract_btn.click(
        fn=extract_handler,
        inputs=[documents_state, rules_editor],
        outputs=[entities_state, status_msg, array_selector, column_selector],
    ).then(
        fn=refresh_view_handler,
        inputs=view_inputs,
        outputs=[entity_table, view_status],
    )

    refresh_btn.click(
        fn=refresh_view_handler,
        inputs=view_inputs,
        outputs=[entity_table, view_status],
    )

    export_btn.click(
        fn=export_entities_handler,
        inputs=[entities_state, output_filename],
        outputs=[download_output, status_msg],
    )

if __name__ == "__main__":
    demo.launch(server_name=settings.server_name, server_port=settings.server_port)
