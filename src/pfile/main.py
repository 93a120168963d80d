"""
Main Streamlit application for pfile.

This is the local gallery front end. It only renders and collects input;
every operation goes through the PhotoStore built once per server process.

Run with: streamlit run src/pfile/main.py
"""

import asyncio
import re
import tempfile
from pathlib import Path

import streamlit as st

from pfile.config import get_debug_mode
from pfile.errors import PFileError
from pfile.logging_config import configure_structured_logging, get_logger, log_user_action
from pfile.models.key import KEY_EXPORT_FILENAME
from pfile.services.photo_store import PhotoStore, create_photo_store
from pfile.services.thumbnail import from_data_url

configure_structured_logging()
logger = get_logger(__name__)

PAGES = {"upload": "📤 Upload", "gallery": "🖼️ Gallery", "settings": "⚙️ Settings"}
DEFAULT_ACCENT_COLOR = "#667eea"
HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")


@st.cache_resource
def get_photo_store() -> PhotoStore:
    """Build the PhotoStore once per server process."""
    return create_photo_store()


def initialize_session_state() -> None:
    """Initialize session state variables."""
    if "current_page" not in st.session_state:
        st.session_state.current_page = "gallery"
    if "search_term" not in st.session_state:
        st.session_state.search_term = ""


def render_sidebar(store: PhotoStore) -> None:
    """Navigation plus the storage meter."""
    with st.sidebar:
        st.title("🔒 p.file")
        for page, label in PAGES.items():
            if st.button(label, use_container_width=True, key=f"nav_{page}"):
                st.session_state.current_page = page
        usage = store.storage_usage()
        st.progress(usage.percentage / 100)
        st.caption(usage.label())
        if store.key_manager.is_ephemeral:
            st.warning("Your encryption key is not saved. Export it now or your photos will be lost on restart.")


def render_upload_page(store: PhotoStore) -> None:
    """Upload page: files are stored one at a time in selection order."""
    st.header("Upload photos")
    uploaded_files = st.file_uploader("Select photos", accept_multiple_files=True, type=None)
    if not uploaded_files or not st.button("Encrypt and store", type="primary"):
        return

    progress = st.progress(0.0)
    with tempfile.TemporaryDirectory() as temp_dir:
        paths = []
        for index, uploaded_file in enumerate(uploaded_files):
            # One directory per file so identical names in one selection all survive
            path = Path(temp_dir) / str(index) / Path(uploaded_file.name).name
            path.parent.mkdir()
            path.write_bytes(uploaded_file.getvalue())
            paths.append(path)

        def report(current_file: str, completed: int, total: int, stage: str) -> None:
            progress.progress(completed / total, text=f"Uploading {current_file}...")

        summary = asyncio.run(store.add_files(paths, progress_callback=report))

    if summary["successful"]:
        st.success(summary["message"])
    else:
        st.error(summary["message"] if not summary["failed"] else "No photos were stored.")
    for result in summary["results"]:
        if not result["success"]:
            st.error(f"{result['filename']}: {result['error']}")


def render_photo_detail(store: PhotoStore, photo_id: str) -> None:
    """Full-size view with download and delete."""
    try:
        name, mime_type, data = store.download_photo(photo_id)
    except PFileError as e:
        st.error(e.user_message)
        return

    st.image(data, caption=name)
    col_download, col_delete = st.columns(2)
    col_download.download_button("Download", data=data, file_name=name, mime=mime_type)
    if col_delete.button("Delete", key=f"delete_{photo_id}"):
        try:
            store.delete_photo(photo_id)
        except PFileError as e:
            st.error(e.user_message)
            return
        st.session_state.pop("selected_photo", None)
        st.rerun()


def render_gallery_page(store: PhotoStore) -> None:
    """Thumbnail grid with name search."""
    st.header("Gallery")
    term = st.text_input("Search photos", value=st.session_state.search_term)
    st.session_state.search_term = term

    photos = store.search(term)
    if not photos:
        st.info("No photos yet. Upload your first photo to get started.")
        return

    columns = st.columns(4)
    for index, photo in enumerate(photos):
        with columns[index % 4]:
            st.image(from_data_url(photo.thumbnail)[1], caption=f"{photo.name} · {photo.get_display_date()}")
            if st.button("Open", key=f"open_{photo.id}"):
                st.session_state.selected_photo = photo.id

    selected = st.session_state.get("selected_photo")
    if selected:
        st.divider()
        render_photo_detail(store, selected)


def render_settings_page(store: PhotoStore) -> None:
    """Appearance, encryption method, key export/import and archive export."""
    st.header("Settings")
    preferences = store.preferences

    st.subheader("Appearance")
    col_theme, col_accent = st.columns(2)
    if col_theme.button(f"Switch to {'dark' if preferences.get_theme() == 'light' else 'light'} theme"):
        try:
            preferences.toggle_theme()
        except PFileError as e:
            st.error(e.user_message)
        else:
            st.rerun()
    saved_accent = resolve_accent_color(preferences.get_accent_color())
    accent = col_accent.color_picker("Accent color", value=saved_accent)
    if accent != saved_accent:
        try:
            preferences.set_accent_color(accent)
        except PFileError as e:
            st.error(e.user_message)

    settings = preferences.get_settings()
    auto_delete = st.checkbox("Auto-delete", value=bool(settings.get("autoDelete")))
    if auto_delete != settings.get("autoDelete"):
        try:
            preferences.update_setting("autoDelete", auto_delete)
        except PFileError as e:
            st.error(e.user_message)

    methods = ["aes256", "chacha20"]
    current = preferences.get_encryption_method()
    method = st.selectbox("Encryption method", methods, index=methods.index(current))
    if method != current:
        try:
            store.set_encryption_method(method)
            st.success(f"Encryption method changed to {method.upper()}")
        except PFileError as e:
            st.error(e.user_message)

    st.subheader("Encryption key")
    bundle = store.key_bundle()
    st.download_button(
        "Export encryption key",
        data=bundle.to_json(),
        file_name=KEY_EXPORT_FILENAME,
        mime="application/json",
        on_click=log_user_action,
        args=("encryption_key_exported",),
        kwargs={"method": bundle.method, "ephemeral": store.key_manager.is_ephemeral},
    )
    st.caption(bundle.warning)

    key_file = st.file_uploader("Import encryption key", type=["json"], key="key_import")
    if key_file is not None and st.button("Import key"):
        try:
            store.import_key(key_file.getvalue())
            st.success("Encryption key imported")
        except PFileError as e:
            st.error(e.user_message)

    st.subheader("Export")
    if st.button("Prepare archive of all photos"):
        try:
            result = store.export_all()
        except PFileError as e:
            st.error(e.user_message)
            return
        st.download_button(
            "Download archive",
            data=result.archive,
            file_name=result.filename,
            mime="application/zip",
        )
        st.success(f"Exported {result.exported_count} photos")


def resolve_accent_color(color: str | None) -> str:
    """The saved accent color if it is a #rrggbb value, else the default."""
    return color if color and HEX_COLOR.match(color) else DEFAULT_ACCENT_COLOR


def build_theme_css(theme: str, accent_color: str | None) -> str:
    """CSS applying the saved theme and accent color; invalid colors fall back to the default."""
    accent_color = resolve_accent_color(accent_color)
    background, text = ("#0e1117", "#fafafa") if theme == "dark" else ("#ffffff", "#31333f")
    return (
        "<style>"
        f".stApp {{ background-color: {background}; color: {text}; }}"
        f".stButton > button, .stDownloadButton > button {{ border-color: {accent_color}; color: {accent_color}; }}"
        f".stProgress > div > div > div > div {{ background-color: {accent_color}; }}"
        "</style>"
    )


def apply_preferences(store: PhotoStore) -> None:
    """Apply the saved theme and accent color to the page."""
    preferences = store.preferences
    st.markdown(build_theme_css(preferences.get_theme(), preferences.get_accent_color()), unsafe_allow_html=True)


def main() -> None:
    """Main application entry point."""
    st.set_page_config(page_title="p.file - Private Photos", page_icon="🔒", layout="wide")
    initialize_session_state()

    try:
        store = get_photo_store()
        apply_preferences(store)
    except PFileError as e:
        st.error(e.user_message)
        return

    render_sidebar(store)
    page = st.session_state.current_page
    if page == "upload":
        render_upload_page(store)
    elif page == "settings":
        render_settings_page(store)
    else:
        render_gallery_page(store)

    if get_debug_mode():
        with st.expander("Debug Info"):
            st.write("Session State:", st.session_state)


if __name__ == "__main__":
    main()
