"""NiceGUI chat page for the NFRS assistant."""

import logging

from nicegui import events, ui

from nfrs_assistant.chat import ChatService
from nfrs_assistant.exceptions import ChatClientError, CreateFailedError, UnsupportedTypeError, UploadFailedError
from nfrs_assistant.models import Conversation, Message, MessageRole, TransientKind

logger = logging.getLogger(__name__)

LANGUAGES = {"en": "English", "ne": "नेपाली"}

CUSTOM_CSS = """
<style>
    body { background: #f5f5f5; min-height: 100vh; }
    .app-container { background: white; border-radius: 12px; box-shadow: 0 2px 8px rgba(0, 0, 0, 0.1); }
    .header { background: linear-gradient(135deg, #1e3a8a 0%, #2563eb 100%); }
    .message-user { background: #2563eb; color: white; border-radius: 18px 18px 4px 18px; }
    .message-assistant { background: #f3f4f6; color: #1f2937; border-radius: 18px 18px 18px 4px; }
    .message-thinking { background: #eef2ff; color: #4338ca; border-radius: 18px; white-space: pre; }
</style>
"""


def _time(message: Message) -> str:
    return message.created_at.astimezone().strftime("%I:%M %p")


@ui.page("/")
async def chat_page() -> None:
    """Main chat page; one ChatService per browser tab."""
    ui.add_head_html(CUSTOM_CSS)
    service = ChatService()

    messages_container: ui.column
    reveal_row: ui.row
    reveal_text: ui.markdown
    input_field: ui.textarea
    send_btn: ui.button

    def render_message(message: Message) -> None:
        is_user = message.role == MessageRole.USER
        if message.transient == TransientKind.THINKING:
            bubble = "message-thinking"
        else:
            bubble = "message-user" if is_user else "message-assistant"
        align = "justify-end" if is_user else "justify-start"

        with ui.row().classes(f"w-full {align}"):
            with ui.column().classes("max-w-[75%] gap-1"):
                with ui.element("div").classes(f"px-4 py-3 {bubble}"):
                    if is_user or message.is_transient:
                        ui.label(message.content).classes("text-sm whitespace-pre-wrap")
                    else:
                        ui.markdown(message.content).classes("text-sm")
                if message.sources:
                    with ui.expansion(f"Sources ({len(message.sources)})").classes("text-xs"):
                        for source in message.sources:
                            ui.label(f"{source.title}: {source.description}").classes("text-xs")
                if message.experts:
                    with ui.row().classes("gap-1"):
                        for expert in message.experts:
                            ui.chip(expert.name).props("dense outline").tooltip(expert.title)
                ui.label(_time(message)).classes(
                    f"text-[10px] text-gray-400 {'self-end' if is_user else 'self-start'}"
                )

    def refresh_messages(snapshot: list[Message]) -> None:
        messages_container.clear()
        with messages_container:
            if not snapshot:
                with ui.column().classes("w-full h-64 items-center justify-center gap-3"):
                    ui.icon("forum").classes("text-5xl text-gray-300")
                    ui.label("Ask a question about NFRS").classes("text-lg text-gray-400")
            for message in snapshot:
                render_message(message)

    def show_reveal(text: str | None) -> None:
        reveal_row.set_visibility(text is not None)
        reveal_text.set_content(text or "")

    @ui.refreshable
    def conversation_list() -> None:
        current = service.store.current
        for conversation in service.store.conversations:
            render_conversation(conversation, current is not None and current.id == conversation.id)

    def render_conversation(conversation: Conversation, selected: bool) -> None:
        with ui.row().classes(
            f"w-full items-center justify-between px-2 py-1 rounded {'bg-blue-50' if selected else ''}"
        ):
            ui.label(conversation.title).classes("text-sm cursor-pointer truncate flex-grow").on(
                "click", lambda c=conversation: open_conversation(c.id)
            )
            ui.button(icon="delete", on_click=lambda c=conversation: delete_conversation(c.id)).props(
                "flat round dense size=sm"
            )

    async def load_conversations() -> None:
        try:
            await service.store.list_conversations()
        except ChatClientError as e:
            ui.notify(e.message, type="warning")
        conversation_list.refresh()

    async def open_conversation(conversation_id: int) -> None:
        if service.orchestrator.busy:
            return
        try:
            await service.orchestrator.open_conversation(conversation_id)
            await service.documents.refresh_documents()
        except ChatClientError as e:
            ui.notify(e.message, type="negative")
        conversation_list.refresh()

    async def delete_conversation(conversation_id: int) -> None:
        if service.orchestrator.busy:
            return
        try:
            await service.store.delete(conversation_id)
        except ChatClientError as e:
            ui.notify(e.message, type="negative")
        conversation_list.refresh()

    def new_chat() -> None:
        if service.orchestrator.busy:
            return
        service.store.clear_selection()
        conversation_list.refresh()

    async def send_message() -> None:
        text = input_field.value.strip()
        if not text or service.orchestrator.busy:
            return
        input_field.value = ""
        send_btn.disable()
        try:
            await service.orchestrator.submit(text)
            if service.orchestrator.last_error:
                ui.notify(service.orchestrator.last_error, type="negative")
        except CreateFailedError as e:
            input_field.value = text
            ui.notify(f"Could not start a conversation: {e.reason}", type="negative")
        finally:
            send_btn.enable()
            conversation_list.refresh()

    async def handle_upload(e: events.UploadEventArguments) -> None:
        content = await e.file.read()
        try:
            document = await service.documents.upload(e.file.name, content)
            ui.notify(f"Uploaded {document.title}", type="positive")
        except (UnsupportedTypeError, UploadFailedError) as error:
            ui.notify(error.message, type="negative")
        finally:
            upload.reset()
            conversation_list.refresh()

    # === UI Layout ===
    with ui.row().classes("w-full min-h-screen p-4 gap-4 no-wrap"):
        with ui.column().classes("w-64 app-container p-3 gap-2"):
            ui.button("New chat", icon="add", on_click=new_chat).props("unelevated").classes("w-full")
            conversation_list()

        with ui.column().classes("flex-grow app-container").style("height: calc(100vh - 2rem)"):
            with ui.row().classes("w-full header px-5 py-4 items-center justify-between"):
                with ui.row().classes("items-center gap-3"):
                    ui.icon("account_balance").classes("text-white text-3xl")
                    ui.label("NFRS Assistant").classes("text-lg font-semibold text-white")
                ui.toggle(
                    LANGUAGES,
                    value=service.config.language,
                    on_change=lambda e: service.set_language(e.value),
                ).props("dense color=white text-color=primary")

            with ui.scroll_area().classes("flex-grow w-full bg-gray-50"), ui.column().classes("w-full p-5 gap-4"):
                messages_container = ui.column().classes("w-full gap-4")
                with ui.row().classes("w-full justify-start") as reveal_row:
                    with ui.element("div").classes("max-w-[75%] px-4 py-3 message-assistant"):
                        reveal_text = ui.markdown("").classes("text-sm")
                ui.label().bind_text_from(service.documents, "thinking_caption", lambda c: c or "").bind_visibility_from(
                    service.documents, "thinking_caption", lambda c: c is not None
                ).classes("text-sm text-indigo-700 whitespace-pre")

            with ui.row().classes("w-full p-4 gap-3 items-end bg-white border-t"):
                upload = ui.upload(on_upload=handle_upload, auto_upload=True, max_files=1).props(
                    "flat dense accept=.pdf,.txt,.docx"
                ).classes("w-48")
                input_field = (
                    ui.textarea(placeholder="Type a message...")
                    .props("autogrow borderless dense rows=1")
                    .classes("flex-grow")
                    .on("keydown.enter.prevent", send_message)
                )
                send_btn = ui.button(icon="send", on_click=send_message).props("round unelevated")

    unsubscribers = [
        service.timeline.subscribe(refresh_messages),
        service.animator.subscribe(show_reveal),
    ]
    refresh_messages(service.timeline.snapshot())
    show_reveal(None)

    async def teardown() -> None:
        for unsubscribe in unsubscribers:
            unsubscribe()
        await service.aclose()

    ui.context.client.on_disconnect(teardown)
    await load_conversations()
