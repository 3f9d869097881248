"""
Gradio web UI for styleprompt.

Single-page UI: API key, reference image (upload or drag and drop), optional
description, prompt count; generate with live progress and a Stop button;
subject/style labels and a numbered prompt list with copy actions.
Uses only the public API: from styleprompt import ...
"""

import argparse
import html
import os
import threading
from collections.abc import Callable, Generator
from typing import Any, cast

import gradio as gr
from keyring.errors import KeyringError

from styleprompt import (
    Config,
    ConfigurationError,
    ImageProcessingError,
    MissingInputError,
    RunStatus,
    SessionState,
    StylepromptError,
    ValidationError,
    __version__,
    accept_dropped_file,
    format_prompt_list,
    iter_generation,
    load_initial_credential,
)
from styleprompt.core.batch import BatchStarted, GenerateFn
from styleprompt.core.config import MAX_PROMPT_COUNT, PROMPTS_PER_BATCH
from styleprompt.core.credentials import CredentialStore, get_credential_store
from styleprompt.core.image_input import ACCEPTED_FORMATS_HINT, try_create_preview
from styleprompt.logging_config import configure_logging, get_logger, tier_from_env

logger = get_logger(__name__)

# Default server port; overridable via STYLEPROMPT_UI_PORT
DEFAULT_UI_PORT = 7860
DEFAULT_UI_HOST = "127.0.0.1"

# Base page title (browser tab); progress is prepended while generating
BASE_PAGE_TITLE = "Image-to-Prompt Generator"

EMPTY_RESULTS_TEXT = "Your generated prompts will appear here."
ANALYZING_TEXT = "Analyzing image and crafting prompts..."

# Shared cancellation event: Generate clears at start, Stop sets it
_cancel_event = threading.Event()

_credential_store: CredentialStore | None = None


def _page_title_with_status(status_tag: str) -> str:
    """Return full page title with optional status prefix for tab."""
    if not status_tag:
        return BASE_PAGE_TITLE
    return f"{status_tag} {BASE_PAGE_TITLE}"


def _get_credential_store() -> CredentialStore:
    global _credential_store
    if _credential_store is None:
        _credential_store = get_credential_store(Config.from_env())
    return _credential_store


def _exception_to_message(exc: BaseException) -> str:
    """Map library and known exceptions to a short user-facing message."""
    if isinstance(exc, MissingInputError):
        return exc.args[0] if exc.args else "Missing input."
    if isinstance(exc, ValidationError):
        msg = exc.args[0] if exc.args else "Validation failed."
        if getattr(exc, "field", None):
            msg = f"{msg} (field: {exc.field})"
        return msg
    if isinstance(exc, ConfigurationError):
        return exc.args[0] if exc.args else "Invalid configuration."
    if isinstance(exc, ImageProcessingError):
        return exc.args[0] if exc.args else "Image processing failed."
    if isinstance(exc, FileNotFoundError):
        return "The uploaded file could not be found."
    if isinstance(exc, StylepromptError):
        return exc.args[0] if exc.args else "An error occurred."
    return str(exc) if exc.args else "An unexpected error occurred."


def _format_status(message: str, status_type: str = "info") -> str:
    """
    Format a status message with color and icon.

    Args:
        message: The status message text.
        status_type: One of "info", "success", "error", "warning", "idle".

    Returns:
        HTML-formatted status string.
    """
    if status_type == "success":
        icon = "✅"
        color = "#10b981"  # green-500
        bg_color = "#d1fae5"  # green-100
    elif status_type == "error":
        icon = "❌"
        color = "#ef4444"  # red-500
        bg_color = "#fee2e2"  # red-100
    elif status_type == "warning":
        icon = "⚠️"
        color = "#f59e0b"  # amber-500
        bg_color = "#fef3c7"  # amber-100
    elif status_type == "info":
        icon = "ℹ️"
        color = "#6366f1"  # indigo-500
        bg_color = "#e0e7ff"  # indigo-100
    else:  # idle
        return ""

    return f"""<div style="padding: 12px 16px; border-radius: 8px; background-color: {bg_color}; border-left: 4px solid {color}; margin: 8px 0;">
    <span style="font-size: 16px; margin-right: 8px;">{icon}</span>
    <span style="color: {color}; font-weight: 500;">{html.escape(message)}</span>
</div>"""


def _labels_html(subject: str | None, style: str | None) -> str:
    """Subject and style chips shown above the prompt list."""
    chips = []
    if subject:
        chips.append(
            '<div><span style="color: #9ca3af; font-size: 0.9em;">Subject: </span>'
            '<span style="font-weight: 600; color: #0f766e; background: #ccfbf1; '
            f'padding: 4px 12px; border-radius: 9999px;">{html.escape(subject)}</span></div>'
        )
    if style:
        chips.append(
            '<div><span style="color: #9ca3af; font-size: 0.9em;">Style: </span>'
            '<span style="font-weight: 600; color: #4338ca; background: #e0e7ff; '
            f'padding: 4px 12px; border-radius: 9999px;">{html.escape(style)}</span></div>'
        )
    if not chips:
        return ""
    return (
        '<div style="display: flex; flex-wrap: wrap; justify-content: center; '
        f'gap: 12px; margin: 8px 0;">{"".join(chips)}</div>'
    )


def _status_for_session(session: SessionState) -> str:
    """Status banner for the session's run state."""
    status = session.run_status
    if status is RunStatus.RUNNING:
        return _format_status(session.progress or ANALYZING_TEXT, "info")
    if status is RunStatus.SUCCEEDED:
        n = len(session.prompts)
        return _format_status(
            f"Generated {n} prompt{'s' if n != 1 else ''} of {session.target_count}.", "success"
        )
    if status is RunStatus.CANCELLED:
        return _format_status("Stopped.", "info")
    if status is RunStatus.FAILED:
        return _format_status(session.error or "Generation failed.", "error")
    return ""


# (status_html, labels_html, prompts, copy_all_text, generate_on, stop_on, inputs_on, page_title)
StreamUpdate = tuple[str, str, list[str], str, bool, bool, bool, str]


def _session_view(
    session: SessionState,
    status_html: str | None = None,
    page_title: str = BASE_PAGE_TITLE,
) -> StreamUpdate:
    running = session.is_running
    return (
        _status_for_session(session) if status_html is None else status_html,
        _labels_html(session.subject, session.style),
        list(session.prompts),
        format_prompt_list(session.prompts),
        not running and session.can_generate(),
        running,
        not running,
        page_title,
    )


def _run_generate_stream(
    session: SessionState,
    credential: str | None,
    description: str | None,
    count: int | float | None,
    cancel_check: Callable[[], bool] | None = None,
    generate: GenerateFn | None = None,
) -> Generator[StreamUpdate, None, None]:
    """
    Generate flow: sync inputs into the session, run batches, yield a view after each step.

    Yields (status, labels, prompts, copy_all_text, gen_on, stop_on, inputs_on, page_title).
    """
    session.credential = credential or ""
    session.description = description or ""
    session.target_count = int(count) if count else PROMPTS_PER_BATCH

    logger.info("Generate requested count=%d", session.target_count)
    try:
        session.check_ready()
    except MissingInputError as e:
        yield _session_view(session, _format_status(_exception_to_message(e), "warning"))
        return

    config = Config.from_env()
    try:
        config.validate()
    except ConfigurationError as e:
        yield _session_view(session, _format_status(_exception_to_message(e), "error"))
        return

    events = iter_generation(session, config=config, cancel_check=cancel_check, generate=generate)
    try:
        for event in events:
            if isinstance(event, BatchStarted):
                tag = f"[{event.accumulated_count}/{event.target_count}]"
            else:
                tag = f"[{len(event.accumulated)}/{event.target_count}]"
            yield _session_view(session, page_title=_page_title_with_status(tag))
    except ValidationError as e:
        yield _session_view(session, _format_status(_exception_to_message(e), "error"))
        return

    done_tag = "[DONE]" if session.run_status is RunStatus.SUCCEEDED else ""
    yield _session_view(session, page_title=_page_title_with_status(done_tag))


def _expand_update(update: StreamUpdate, session: SessionState) -> tuple[Any, ...]:
    """Turn a plain stream update into Gradio outputs (see _build_blocks for the order)."""
    status_html, labels, prompts, copy_all, gen_on, stop_on, inputs_on, page_title = update
    return (
        status_html,
        labels,
        prompts,
        copy_all,
        gr.update(interactive=gen_on),
        gr.update(interactive=stop_on),
        gr.update(interactive=inputs_on),
        gr.update(interactive=inputs_on),
        gr.update(interactive=inputs_on),
        gr.update(interactive=inputs_on),
        session,
        page_title,
    )


def _generate_click_handler(
    session: SessionState,
    credential: str,
    description: str,
    count: float,
) -> Generator[tuple[Any, ...], None, None]:
    """Generate button logic: clear cancel, run stream, yield updates. Used by UI and tests."""
    logger.debug("Generate clicked")
    _cancel_event.clear()
    try:
        for update in _run_generate_stream(
            session,
            credential,
            description,
            count,
            cancel_check=lambda: _cancel_event.is_set(),
        ):
            yield _expand_update(update, session)
    except StylepromptError as e:
        yield _expand_update(
            _session_view(session, _format_status(_exception_to_message(e), "error")), session
        )
    except Exception as e:
        logger.exception("Unexpected error during generation")
        yield _expand_update(_session_view(session, _format_status(str(e), "error")), session)


def _stop_click_handler() -> tuple[Any, Any]:
    """Stop button logic: set cancel event; the running generator finishes the run."""
    logger.debug("Stop clicked")
    _cancel_event.set()
    return _format_status("Stopping...", "info"), gr.update(interactive=False)


def _credential_change_handler(value: str, session: SessionState) -> tuple[SessionState, Any]:
    """Persist the key on every edit and refresh the Generate button."""
    session.credential = value or ""
    try:
        _get_credential_store().save(session.credential)
    except KeyringError as e:
        logger.warning("Could not save API key to the keychain: %s", e)
    return session, gr.update(interactive=session.can_generate())


def _image_value_path(value: Any) -> str | None:
    """
    Get a file path from a Gradio File value.

    Gradio can return: path str, dict with 'path', or an object with a 'name' attribute.
    """
    if value is None:
        return None
    if isinstance(value, dict):
        path_val = value.get("path") or value.get("name")
        return cast(str, path_val) if isinstance(path_val, str) and path_val.strip() else None
    if isinstance(value, str):
        return value if value.strip() else None
    name = getattr(value, "name", None)
    return name if isinstance(name, str) and name.strip() else None


def _run_image_change(
    value: Any, session: SessionState
) -> tuple[Any, SessionState, str, bool, bool]:
    """
    Accept (or clear) the uploaded image. An accepted change discards previous results.

    The upload widget hands picked and dropped files over the same way, so every
    upload goes through the drop rule: files not declared as images are ignored
    and the session keeps its current image.

    Returns:
        (preview_image_or_None, session, status_html, generate_on, changed)
    """
    path = _image_value_path(value)
    if path is None:
        session.clear_image()
        return None, session, "", False, True
    try:
        payload = accept_dropped_file(path)
    except (ValidationError, ImageProcessingError, FileNotFoundError) as e:
        session.clear_image()
        return None, session, _format_status(_exception_to_message(e), "error"), False, True
    if payload is None:
        return None, session, "", session.can_generate(), False
    session.set_image(payload)
    preview = try_create_preview(payload)
    return preview, session, "", session.can_generate(), True


def _image_change_handler(value: Any, session: SessionState) -> tuple[Any, ...]:
    preview, session, status_html, gen_on, changed = _run_image_change(value, session)
    if not changed:
        return (
            gr.update(),
            session,
            gr.update(),
            gr.update(),
            gr.update(),
            gr.update(),
            gr.update(interactive=gen_on),
        )
    return (
        preview,
        session,
        status_html,
        "",
        [],
        "",
        gr.update(interactive=gen_on),
    )


def _build_blocks() -> gr.Blocks:
    """Build the Gradio Blocks UI."""
    initial_credential = load_initial_credential(Config.from_env())

    header_html = """
<div style="display: flex; align-items: center; gap: 16px; margin: 16px 0 24px 0; flex-wrap: wrap;">
    <h1 style="
        font-size: 2.2em;
        font-weight: 700;
        margin: 0;
        background: linear-gradient(135deg, #6366f1 0%, #8b5cf6 100%);
        -webkit-background-clip: text;
        -webkit-text-fill-color: transparent;
        background-clip: text;
        letter-spacing: -0.02em;
    ">Image-to-Prompt Generator</h1>
    <p style="font-size: 1em; color: #6b7280; margin: 0;">Upload an image, get prompts that replicate its style with new subjects.</p>
</div>
"""

    with gr.Blocks(title=BASE_PAGE_TITLE) as app:
        gr.HTML(header_html)
        page_title = gr.Textbox(value=BASE_PAGE_TITLE, visible=False, elem_id="styleprompt-page-title")
        session_state = gr.State(value=SessionState(credential=initial_credential))
        prompts_state = gr.State(value=[])

        with gr.Row():
            with gr.Column():
                gr.Markdown("### 1. Configure Your API Key")
                credential_tb = gr.Textbox(
                    value=initial_credential,
                    type="password",
                    placeholder="Enter your Google Gemini API Key",
                    show_label=False,
                )
                gr.Markdown("### 2. Upload Your Image")
                image_file = gr.File(
                    label=f"Click to upload or drag and drop ({ACCEPTED_FORMATS_HINT})",
                    file_count="single",
                    file_types=["image"],
                    type="filepath",
                )
                preview_img = gr.Image(
                    label="Preview",
                    type="pil",
                    interactive=False,
                    height=256,
                )
                gr.Markdown("### 3. Describe Your Image (Optional)")
                description_tb = gr.Textbox(
                    placeholder="e.g., 'A logo for a coffee shop', 'Focus on the character's sad expression'...",
                    lines=3,
                    max_lines=6,
                    show_label=False,
                )
                gr.Markdown("### 4. Generate")
                count_slider = gr.Slider(
                    label="Number of Prompts",
                    minimum=PROMPTS_PER_BATCH,
                    maximum=MAX_PROMPT_COUNT,
                    step=PROMPTS_PER_BATCH,
                    value=PROMPTS_PER_BATCH,
                )
                with gr.Row():
                    generate_btn = gr.Button(
                        "Generate Prompts", variant="primary", interactive=False
                    )
                    stop_btn = gr.Button("Stop", variant="stop", interactive=False)

            with gr.Column():
                gr.Markdown("### 5. Get Your AI Prompts")
                status_html = gr.HTML(value="", visible=True)
                labels_html = gr.HTML(value="")

                @gr.render(inputs=[prompts_state])
                def _render_prompts(prompts: list[str]) -> None:
                    if not prompts:
                        gr.Markdown(EMPTY_RESULTS_TEXT)
                        return
                    for index, prompt in enumerate(prompts, start=1):
                        gr.Textbox(
                            value=prompt,
                            label=f"{index}.",
                            lines=2,
                            interactive=False,
                            show_copy_button=True,
                        )

                copy_all_tb = gr.Textbox(
                    label="Copy All Prompts",
                    lines=6,
                    max_lines=12,
                    interactive=False,
                    show_copy_button=True,
                )

        _JS_SET_PAGE_TITLE = "function(title) { document.title = title || ''; return title; }"
        _gen_outputs = [
            status_html,
            labels_html,
            prompts_state,
            copy_all_tb,
            generate_btn,
            stop_btn,
            credential_tb,
            image_file,
            description_tb,
            count_slider,
            session_state,
            page_title,
        ]
        gen_ev = generate_btn.click(
            fn=_generate_click_handler,
            inputs=[session_state, credential_tb, description_tb, count_slider],
            outputs=_gen_outputs,
        )
        gen_ev.then(fn=None, js=_JS_SET_PAGE_TITLE, inputs=[page_title], outputs=[page_title])

        # Outside the queue so it runs while a generation is in progress
        stop_btn.click(
            fn=_stop_click_handler,
            inputs=[],
            outputs=[status_html, stop_btn],
            queue=False,
        )

        credential_tb.change(
            fn=_credential_change_handler,
            inputs=[credential_tb, session_state],
            outputs=[session_state, generate_btn],
        )

        image_file.change(
            fn=_image_change_handler,
            inputs=[image_file, session_state],
            outputs=[
                preview_img,
                session_state,
                status_html,
                labels_html,
                prompts_state,
                copy_all_tb,
                generate_btn,
            ],
        )

        gr.HTML(f"""
<div style="text-align: center; margin: 40px 0 20px 0; padding-top: 20px; border-top: 1px solid #e5e7eb;">
    <p style="font-size: 0.9em; color: #9ca3af; margin: 0;">styleprompt v{__version__} · Built with Gradio and the Google Gemini API.</p>
</div>
""")

    return cast(gr.Blocks, app)


def launch(
    server_name: str | None = None,
    server_port: int | None = None,
    share: bool = False,
) -> None:
    """
    Build the Gradio app and launch the server.

    Args:
        server_name: Host to bind (default: STYLEPROMPT_UI_HOST or 127.0.0.1).
        server_port: Port (default: STYLEPROMPT_UI_PORT or 7860).
        share: If True, create a public share link (e.g. gradio.live).
    """
    host = server_name or os.getenv("STYLEPROMPT_UI_HOST", DEFAULT_UI_HOST)
    port = server_port
    if port is None:
        try:
            port = int(os.getenv("STYLEPROMPT_UI_PORT", str(DEFAULT_UI_PORT)))
        except ValueError:
            port = DEFAULT_UI_PORT
    print(f"styleprompt ui is starting (v{__version__}) on http://{host}:{port}...")
    app = _build_blocks()
    app.launch(server_name=host, server_port=port, share=share, inbrowser=True)


def main() -> None:
    """Entry point for the styleprompt-ui console script. Parses --port, --host, --share."""
    parser = argparse.ArgumentParser(
        description="Launch the styleprompt Gradio web UI.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        metavar="PORT",
        help=f"Port to bind (default: STYLEPROMPT_UI_PORT or {DEFAULT_UI_PORT}).",
    )
    parser.add_argument(
        "--host",
        type=str,
        default=None,
        metavar="HOST",
        help=f"Host to bind (default: STYLEPROMPT_UI_HOST or {DEFAULT_UI_HOST}). Use 0.0.0.0 for LAN.",
    )
    parser.add_argument(
        "--share",
        action="store_true",
        default=None,
        help="Create a public share link (e.g. gradio.live). Overrides STYLEPROMPT_UI_SHARE.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=None,
        help="Increase log verbosity (-v prompts, -vv API details). Overrides STYLEPROMPT_VERBOSITY.",
    )
    args = parser.parse_args()
    configure_logging(args.verbose if args.verbose is not None else tier_from_env())
    share_val = args.share
    if share_val is None:
        env_share = os.environ.get("STYLEPROMPT_UI_SHARE", "").lower()
        share_val = env_share in ("1", "true", "yes")
    launch(
        server_name=args.host,
        server_port=args.port,
        share=share_val,
    )
