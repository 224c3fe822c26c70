"""
Streamlit Frontend for Ortak Kasa

The presentation layer: renders groups, pending entries and history,
and turns clicks into LedgerController calls.

DESIGN PRINCIPLES:
1. The controller owns the document; this file only reads it
2. Every destructive action (delete, reset, import) asks for confirmation
3. Rejected numbers are shown as a blocking notice, nothing is saved
4. Ticking a group is only a marker and never touches the pool
"""

from typing import Callable

import streamlit as st

from ortak_kasa.models.ledger import (
    Group,
    GroupPatch,
    HistoryPatch,
    NeedTag,
    format_number,
)
from ortak_kasa.orchestrator import LedgerController, create_controller
from ortak_kasa.queries import format_amount, history_newest_first
from ortak_kasa.validation import LedgerError


NEED_LABELS = {
    NeedTag.GEREKLI: "Gerekli",
    NeedTag.FUZULI: "Fuzuli",
    NeedTag.ZORUNLU: "Zorunlu",
}
PALETTE = ["slate", "red", "amber", "emerald", "sky", "violet", "rose"]
PALETTE_HEX = {
    "slate": "#64748b",
    "red": "#ef4444",
    "amber": "#f59e0b",
    "emerald": "#10b981",
    "sky": "#0ea5e9",
    "violet": "#8b5cf6",
    "rose": "#f43f5e",
}


# Page configuration
st.set_page_config(
    page_title="Ortak Kasa",
    page_icon="💰",
    layout="centered",
)


@st.cache_resource
def get_controller() -> LedgerController:
    """Get or create the controller (cached for the server process)."""
    return create_controller()


def apply_theme(dark_mode: bool) -> None:
    if not dark_mode:
        return
    st.markdown("""
    <style>
        .stApp { background-color: #18181b; color: #f4f4f5; }
        .stApp p, .stApp label, .stApp span { color: #e4e4e7; }
    </style>
    """, unsafe_allow_html=True)


def need_selectbox(label: str, key: str, current: NeedTag = NeedTag.GEREKLI) -> NeedTag:
    tags = list(NeedTag)
    return st.selectbox(
        label,
        tags,
        index=tags.index(current),
        format_func=lambda tag: NEED_LABELS[tag],
        key=key,
    )


def main():
    """Main application entry point."""
    controller = get_controller()
    apply_theme(controller.document.dark_mode)

    render_sidebar(controller)

    page = st.radio(
        "Sayfa",
        ["🗂️ Gruplar", "📜 Geçmiş"],
        horizontal=True,
        label_visibility="collapsed",
    )
    if page == "🗂️ Gruplar":
        render_groups_page(controller)
    else:
        render_history_page(controller)


def render_sidebar(controller: LedgerController):
    summary = controller.summary()

    st.sidebar.title("💰 Ortak Kasa")
    st.sidebar.metric("Toplam", format_amount(summary.total, signed=True))
    st.sidebar.caption(f"{summary.record_count} işlem, son sıfırlamadan beri")
    if controller.document.last_reset_at:
        st.sidebar.caption(
            f"Son sıfırlama: {controller.document.last_reset_at:%Y-%m-%d %H:%M}"
        )

    st.sidebar.markdown("**Etiket dağılımı**")
    for tag in NeedTag:
        st.sidebar.write(f"{NEED_LABELS[tag]}: {summary.tag_distribution[tag.value]}")

    st.sidebar.markdown("---")

    # Reset requires an explicit confirmation tick
    confirm_reset = st.sidebar.checkbox("Toplam ve geçmiş sıfırlansın", key="confirm_reset")
    if st.sidebar.button("Sıfırla", disabled=not confirm_reset):
        controller.reset_ledger()
        st.rerun()

    st.sidebar.markdown("---")

    dark = st.sidebar.toggle("Karanlık mod", value=controller.document.dark_mode)
    if dark != controller.document.dark_mode:
        controller.set_dark_mode(dark)
        st.rerun()

    auto_backup = st.sidebar.toggle(
        "Haftalık otomatik yedek", value=controller.document.auto_backup_enabled
    )
    if auto_backup != controller.document.auto_backup_enabled:
        controller.set_auto_backup(auto_backup)
        st.rerun()

    exported = controller.export_payload()
    st.sidebar.download_button(
        "Dışa Aktar",
        data=exported.content,
        file_name=exported.filename,
        mime="application/json",
        on_click=controller.record_export,
        args=(exported,),
    )

    with st.sidebar.expander("İçe Aktar"):
        raw_text = st.text_area("JSON", placeholder="Buraya JSON yapıştırın", key="import_text")
        confirm_import = st.checkbox("Mevcut verinin yerini alsın", key="confirm_import")
        if st.button("Aktar", disabled=not (raw_text and confirm_import)):
            try:
                controller.import_document(raw_text)
            except LedgerError as e:
                st.error(f"İçe aktarım başarısız: {e}")
            else:
                st.success("İçe aktarıldı.")
                st.rerun()


def render_groups_page(controller: LedgerController):
    st.caption(
        "Kural: Bir gruba sayısal değer girdiğinde ortak kasaya etki = "
        "(grup değeri − girilen). Tiklemek yalnızca işarettir; kasayı etkilemez."
    )

    if st.button("➕ Yeni Grup"):
        controller.add_group()
        st.rerun()

    summaries = {s.group_id: s for s in controller.summary().groups}
    for group in controller.document.groups:
        render_group_card(controller, group, summaries[group.id].projected_delta)


def submit_input(action: Callable[[str, str, NeedTag], None], group_id: str) -> None:
    """Button callback: send the typed number, then clear the box."""
    input_key = f"input_{group_id}"
    try:
        action(
            group_id,
            st.session_state.get(input_key, ""),
            st.session_state[f"need_{group_id}"],
        )
    except LedgerError as e:
        st.session_state[f"input_error_{group_id}"] = f"Geçerli bir sayı girin. ({e})"
    else:
        st.session_state[input_key] = ""


def render_group_card(controller: LedgerController, group: Group, projected: float):
    color = PALETTE_HEX.get(group.color, PALETTE_HEX["slate"])
    with st.container(border=True):
        header, tick = st.columns([5, 1])
        header.markdown(
            f"<span style='color:{color}'>■</span> **{group.display_name}** "
            f"(değer: {format_amount(group.value)})",
            unsafe_allow_html=True,
        )
        header.caption(group.note or "Not yok")
        ticked = tick.checkbox("✓", value=group.ticked, key=f"tick_{group.id}")
        if ticked != group.ticked:
            controller.update_group(group.id, GroupPatch(ticked=ticked))
            st.rerun()

        # Input row
        amount_col, need_col = st.columns([3, 2])
        amount_col.text_input("Sayı gir (ör. 170)", key=f"input_{group.id}")
        with need_col:
            need_selectbox("Etiket", key=f"need_{group.id}")

        apply_col, queue_col = st.columns(2)
        apply_col.button(
            "Uygula",
            key=f"apply_{group.id}",
            on_click=submit_input,
            args=(controller.commit_direct_input, group.id),
        )
        queue_col.button(
            "Bekleyene ekle",
            key=f"queue_{group.id}",
            on_click=submit_input,
            args=(controller.queue_pending_entry, group.id),
        )
        error = st.session_state.pop(f"input_error_{group.id}", None)
        if error:
            st.error(error)

        if group.pending:
            render_pending(controller, group, projected)

        with st.expander("Düzenle"):
            render_edit_form(controller, group)

        confirm_delete = st.checkbox("Silmeyi onayla", key=f"confirm_delete_{group.id}")
        if st.button("Sil", key=f"delete_{group.id}", disabled=not confirm_delete):
            controller.delete_group(group.id)
            st.rerun()


def render_pending(controller: LedgerController, group: Group, projected: float):
    st.markdown(
        f"**Bekleyenler** ({len(group.pending)}) → etki "
        f"{format_amount(projected, signed=True)}"
    )
    for entry in group.pending:
        text_col, remove_col = st.columns([5, 1])
        text_col.write(f"{format_amount(entry.amount)} · {NEED_LABELS[entry.need]}")
        if remove_col.button("✕", key=f"remove_{entry.id}"):
            controller.remove_pending_entry(group.id, entry.id)
            st.rerun()

    apply_col, clear_col = st.columns(2)
    if apply_col.button("Bekleyenleri uygula", key=f"apply_pending_{group.id}"):
        controller.apply_pending(group.id)
        st.rerun()
    if clear_col.button("Temizle", key=f"clear_pending_{group.id}"):
        controller.clear_pending(group.id)
        st.rerun()


def render_edit_form(controller: LedgerController, group: Group):
    with st.form(key=f"edit_{group.id}"):
        name = st.text_input("Ad (isteğe bağlı)", value=group.name)
        value = st.text_input("Atanan sayısal değer", value=format_number(group.value))
        note = st.text_area("Not", value=group.note)
        color = st.selectbox(
            "Renk",
            PALETTE,
            index=PALETTE.index(group.color) if group.color in PALETTE else 0,
        )
        if st.form_submit_button("Kaydet"):
            try:
                controller.update_group(
                    group.id,
                    GroupPatch(name=name, value=value, note=note, color=color),
                )
            except LedgerError as e:
                st.error(f"Geçerli bir sayısal değer girin. ({e})")
            else:
                st.rerun()


def render_history_page(controller: LedgerController):
    st.subheader("İşlem Geçmişi (Son Sıfırlamadan Beri)")

    records = history_newest_first(controller.document)
    if not records:
        st.info("Kayıt yok.")
        return

    for record in records:
        with st.container(border=True):
            st.caption(f"{record.ts:%Y-%m-%d %H:%M}")
            st.markdown(
                f"**{record.group_name_at_the_time}** "
                f"(değer: {format_amount(record.group_value_at_the_time)})"
            )
            st.write(
                f"Etki: ({format_amount(record.group_value_at_the_time)} − "
                f"{format_amount(record.input)}) = "
                f"{format_amount(record.delta, signed=True)}"
            )
            with st.form(key=f"note_{record.id}"):
                note = st.text_input("Not", value=record.note)
                need = need_selectbox("Etiket", key=f"hneed_{record.id}", current=record.need)
                if st.form_submit_button("Kaydet"):
                    controller.update_history_record(
                        record.id, HistoryPatch(note=note, need=need)
                    )
                    st.rerun()


if __name__ == "__main__":
    main()
