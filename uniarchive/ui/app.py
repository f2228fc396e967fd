"""
Archive Universitaire - Streamlit front end

Browses semester -> type -> subject -> year -> file through the archive API
and hosts the admin console. Routing uses the `path` query parameter so every
page has a shareable URL (?path=/semester/<id>/types).

Run:
    streamlit run uniarchive/ui/app.py
"""

import logging

import streamlit as st

from uniarchive.client.admin_console import TABS, AdminConsole, PdfFile
from uniarchive.client.api import ArchiveClient
from uniarchive.client.cards import Card
from uniarchive.client.config import ClientConfig
from uniarchive.client.file_actions import DOWNLOAD_UNAVAILABLE, VIEW_UNAVAILABLE, FileActions
from uniarchive.client.formatting import format_date, format_file_size
from uniarchive.client.pages import ADMIN, FilesPage, ListPage, YearsPage, build_page, resolve_route
from uniarchive.client.query import QueryStatus
from uniarchive.models import ref_label, ref_name

logger = logging.getLogger(__name__)

st.set_page_config(
    page_title="Archive Universitaire",
    page_icon="📚",
    layout="wide",
)

TAB_LABELS = {"upload": "📤 Upload", "manage": "🗂️ Gestion", "stats": "📊 Statistiques"}


# ============================================================================
# SESSION OBJECTS
# ============================================================================

def get_config() -> ClientConfig:
    if "config" not in st.session_state:
        host = st.context.headers.get("Host", "localhost") if st.context.headers else "localhost"
        st.session_state.config = ClientConfig.resolve(hostname=host)
        logger.info(f"API base URL: {st.session_state.config.base_url}")
    return st.session_state.config


def get_client() -> ArchiveClient:
    if "client" not in st.session_state:
        st.session_state.client = ArchiveClient(get_config())
    return st.session_state.client


def get_console() -> AdminConsole:
    if "console" not in st.session_state:
        st.session_state.console = AdminConsole(get_client())
    return st.session_state.console


def navigate(path: str) -> None:
    st.query_params["path"] = path
    st.rerun()


def current_page(page_cls, params) -> ListPage:
    """Page controller for the current path; a new path cancels the previous one."""
    path = st.query_params.get("path", "/")
    if st.session_state.get("page_path") != path or "page" not in st.session_state:
        previous = st.session_state.get("page")
        if previous is not None:
            previous.cancel()
        page = build_page(get_client(), page_cls, params)
        with st.spinner(page.loading_message):
            page.load()
        st.session_state.page = page
        st.session_state.page_path = path
    return st.session_state.page


# ============================================================================
# RENDERING
# ============================================================================

def render_navbar() -> None:
    with st.sidebar:
        st.markdown("## 📚 Archive Universitaire")
        if st.button("🏠 Accueil", use_container_width=True):
            navigate("/")
        if st.button("🔐 Administration", use_container_width=True):
            navigate("/admin")


def render_card(card: Card) -> None:
    with st.container(border=True):
        st.markdown(
            f"<div style='height:6px;border-radius:3px;background:{card.theme.gradient or card.theme.color}'></div>",
            unsafe_allow_html=True,
        )
        icon = f"{card.theme.icon} " if card.theme.icon else ""
        st.markdown(f"### {icon}{card.title}")
        if card.subtitle:
            st.caption(card.subtitle)
        if card.description:
            st.write(card.description)
        if card.href and st.button(f"{card.action or 'Ouvrir'} →", key=f"go-{card.record_id}"):
            navigate(card.href)


def render_grid(cards, columns: int = 3) -> None:
    cols = st.columns(columns)
    for i, card in enumerate(cards):
        with cols[i % columns]:
            render_card(card)


def render_file_card(card: Card, record, actions: FileActions) -> None:
    with st.container(border=True):
        st.markdown(f"### 📄 {card.title}")
        st.caption(f"{card.meta['size']} · {card.meta['uploaded']}")
        view_url = actions.view_url(record)
        download_url = actions.download_url(record)
        c1, c2 = st.columns(2)
        with c1:
            if view_url:
                st.link_button("Ouvrir", view_url, use_container_width=True)
            else:
                st.error(VIEW_UNAVAILABLE)
        with c2:
            if download_url:
                st.link_button("Télécharger", download_url, use_container_width=True)
            else:
                st.error(DOWNLOAD_UNAVAILABLE)


def render_list_page(page: ListPage) -> None:
    if isinstance(page, YearsPage) and page.breadcrumb:
        crumbs = page.breadcrumb
        st.caption(f"{crumbs['semester']} › {crumbs['type']} › {crumbs['subject']}")
    st.title(page.title)

    if page.status is QueryStatus.ERROR:
        st.error(page.error)
        if st.button("Réessayer"):
            with st.spinner(page.loading_message):
                page.retry()
            st.rerun()
        return

    if page.is_empty:
        st.info(page.empty_message)
        return

    if isinstance(page, FilesPage):
        actions = FileActions(get_config(), http=get_client().http)
        cols = st.columns(3)
        for i, (card, record) in enumerate(zip(page.cards, page.records)):
            with cols[i % 3]:
                render_file_card(card, record, actions)
        return

    render_grid(page.cards)


def render_login(console: AdminConsole) -> None:
    st.title("🔐 Accès administrateur")
    with st.form("login"):
        password = st.text_input("Mot de passe", type="password")
        if st.form_submit_button("Se connecter"):
            if console.login(password):
                st.rerun()
    if console.auth_error:
        st.error(console.auth_error)


def render_upload(console: AdminConsole) -> None:
    form = console.form
    with st.form("upload", clear_on_submit=False):
        semester = st.selectbox("Semestre", console.semester_choices,
                                index=console.semester_choices.index(form.semester))
        doc_type = st.selectbox("Type", console.type_choices,
                                index=console.type_choices.index(form.doc_type))
        subject = st.text_input("Matière", value=form.subject)
        year = st.text_input("Année (ex: 2024 ou 2023-2024)", value=form.year)
        uploaded = st.file_uploader("Fichier PDF", type=["pdf"])
        submitted = st.form_submit_button("Uploader", disabled=console.uploading)

    if submitted:
        form.semester, form.doc_type = semester, doc_type
        form.subject, form.year = subject, year
        form.pdf = (
            PdfFile(uploaded.name, uploaded.getvalue(), uploaded.type or "")
            if uploaded is not None else None
        )
        with st.spinner("Upload en cours..."):
            console.submit_upload()

    if console.message:
        (st.success if console.message_is_success else st.error)(console.message)


def render_manage(console: AdminConsole) -> None:
    if st.button("🔄 Actualiser") or not console.files:
        console.load_files()
    if console.files_error:
        st.error(console.files_error)
        return

    c1, c2, c3 = st.columns([2, 1, 1])
    console.search = c1.text_input("Rechercher", value=console.search)
    console.semester_filter = c2.selectbox("Semestre", ("",) + console.semester_choices)
    console.type_filter = c3.selectbox("Type", ("",) + console.type_choices)

    if console.manage_message:
        st.info(console.manage_message)

    visible = console.visible_files()
    st.caption(f"{len(visible)} fichier(s)")
    for f in visible:
        with st.container(border=True):
            st.markdown(f"**{f.original_name}**")
            st.caption(
                f"{ref_label(f.semester)} · {ref_label(f.doc_type)} · {ref_name(f.subject)} · "
                f"{ref_name(f.year)} · {format_file_size(f.file_size)} · {format_date(f.uploaded_at)}"
            )
            with st.expander("Modifier"):
                new_name = st.text_input("Nom", value=f.original_name, key=f"name-{f.id}")
                new_subject = st.text_input("Matière", value=ref_name(f.subject), key=f"subj-{f.id}")
                new_year = st.text_input("Année", value=ref_name(f.year), key=f"year-{f.id}")
                if st.button("Enregistrer", key=f"save-{f.id}"):
                    console.edit_file(
                        f.id,
                        original_name=new_name if new_name != f.original_name else None,
                        subject=new_subject if new_subject != ref_name(f.subject) else None,
                        year=new_year if new_year != ref_name(f.year) else None,
                    )
                    st.rerun()

            if console.pending_delete == f.id:
                st.warning(f"Supprimer définitivement « {f.original_name} » ?")
                b1, b2 = st.columns(2)
                if b1.button("Confirmer", key=f"confirm-{f.id}", type="primary"):
                    console.confirm_delete()
                    st.rerun()
                if b2.button("Annuler", key=f"cancel-{f.id}"):
                    console.cancel_delete()
                    st.rerun()
            elif st.button("🗑️ Supprimer", key=f"delete-{f.id}"):
                console.request_delete(f.id)
                st.rerun()


def render_stats(console: AdminConsole) -> None:
    console.load_stats()
    if console.stats_error:
        st.error(console.stats_error)
        return
    stats = console.stats
    cols = st.columns(4)
    cols[0].metric("Fichiers", stats.total_files)
    cols[1].metric("Taille totale", format_file_size(stats.total_size))
    cols[2].metric("Matières", stats.total_subjects)
    cols[3].metric("Années", stats.total_years)
    st.subheader("Par semestre")
    st.bar_chart({"Fichiers": stats.files_by_semester})
    st.subheader("Par type")
    st.bar_chart({"Fichiers": stats.files_by_type})
    if stats.last_upload_at:
        st.caption(f"Dernier upload : {format_date(stats.last_upload_at)}")


def render_admin() -> None:
    console = get_console()
    if not console.authenticated:
        render_login(console)
        return

    head, logout = st.columns([5, 1])
    head.title("Administration")
    if logout.button("Déconnexion"):
        console.logout()
        st.rerun()

    tab = st.radio(
        "Onglet",
        TABS,
        index=TABS.index(console.tab),
        format_func=TAB_LABELS.get,
        horizontal=True,
        label_visibility="collapsed",
    )
    console.select_tab(tab)
    {"upload": render_upload, "manage": render_manage, "stats": render_stats}[tab](console)


def main() -> None:
    render_navbar()
    path = st.query_params.get("path", "/")
    route = resolve_route(path)
    if route is None:
        st.error("Page introuvable")
        return

    target, params = route
    if target == ADMIN:
        render_admin()
        return
    render_list_page(current_page(target, params))


main()
