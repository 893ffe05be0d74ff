"""Telegram handlers for uploading lawsuits, running calculations, history and export."""

from __future__ import annotations

import logging
import tempfile
from datetime import datetime
from pathlib import Path

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.constants import ChatAction
from telegram.ext import ContextTypes

import config
from liquidacao.calculo.batch import process_queue, remaining_queue
from liquidacao.calculo.export_excel import export_calculation_excel, export_history_excel
from liquidacao.calculo.export_pdf import export_calculation_pdf, export_calculations_pdf
from liquidacao.calculo.extractor import MODEL_VARIANTS, extract_calculation
from liquidacao.calculo.formatting import (
    CONSOLIDATED_EXCEL_NAME,
    CONSOLIDATED_PDF_NAME,
    excel_filename,
    format_brl,
    nature_label,
    pdf_filename,
)
from liquidacao.calculo.history import HistoryStore, history_key
from liquidacao.calculo.models import Calculation, HistoryEntry, parse_number
from liquidacao.calculo.session import CalculationSession
from liquidacao.calculo.uploads import QueuedFile, add_files, remove_file

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 4000
HISTORY_PAGE_SIZE = 10

HELP_TEXT = (
    "Liquidacao da Inicial\n\n"
    "Envia o processo judicial (PDF ou imagem, max {limit:g}MB) e depois /calculate.\n\n"
    "Entrada:\n"
    "/queue - arquivos na fila\n"
    "/remove <n> - tirar arquivo da fila\n"
    "/clear - limpar fila e resultado atual\n"
    "/instructions <texto> - instrucoes periciais de calculo\n"
    "/employer_pct <n> - INSS patronal % (atual: {pct})\n"
    "/model <preciso|rapido> - qualidade do modelo (atual: {model})\n"
    "/calculate - iniciar a liquidacao\n\n"
    "Historico:\n"
    "/history - liquidacoes anteriores\n"
    "/open <n> - abrir liquidacao do historico\n"
    "/clear_history - apagar historico\n"
    "/export - exportar liquidacao atual (Excel/PDF)\n"
    "/export_history - exportar historico consolidado\n\n"
    "Ajuste pericial:\n"
    "/edit - iniciar ajuste\n"
    "/set <campo> <valor> - reclamante, reclamada, processo, observacao, inss, irrf, fgts, honorarios, patronal\n"
    "/item <n> <campo> <valor> - descricao, natureza, corrigido, juros, nominal\n"
    "/month <n> <m> <campo> <valor> - competencia, base, nominal, indice, corrigido, juros\n"
    "/add_item <descricao>, /del_item <n>\n"
    "/add_month <n>, /del_month <n> <m>\n"
    "/save - guardar ajuste no historico\n"
    "/cancel - descartar ajuste"
)


def is_authorized(user_id: int) -> bool:
    if not config.ALLOWED_USER_IDS:
        return True
    return user_id in config.ALLOWED_USER_IDS


def get_session(update: Update, context: ContextTypes.DEFAULT_TYPE) -> CalculationSession:
    """Session for this chat; history is loaded from storage on first use."""
    session = context.user_data.get("calc_session")
    if session is None:
        store = HistoryStore(history_key(update.effective_chat.id))
        session = CalculationSession(history=store)
        context.user_data["calc_session"] = session
    return session


async def send_long(update: Update, text: str, reply_markup=None):
    """Split text on line boundaries to fit Telegram's message limit."""
    chunks = []
    current = ""
    for line in text.split("\n"):
        if len(current) + len(line) + 1 > MAX_MESSAGE_LENGTH and current:
            chunks.append(current)
            current = ""
        current += line + "\n"
    if current:
        chunks.append(current)
    for i, chunk in enumerate(chunks):
        markup = reply_markup if i == len(chunks) - 1 else None
        await update.effective_chat.send_message(chunk.rstrip(), reply_markup=markup)


# --- Formatting ---


def format_totals(calc: Calculation) -> str:
    return (
        f"Principal corrigido: {format_brl(calc.corrected_total)}\n"
        f"Juros de mora: {format_brl(calc.interest_total)}\n"
        f"Bruto devido: {format_brl(calc.gross_total)}\n"
        f"(-) INSS: {format_brl(calc.social_security)}\n"
        f"(-) IRRF: {format_brl(calc.income_tax)}\n"
        f"(+) FGTS: {format_brl(calc.severance_fund)}\n"
        f"Liquido ao reclamante: {format_brl(calc.net_total)}\n\n"
        f"Honorarios ({calc.fee_percentage:g}%): {format_brl(calc.fee_amount)}\n"
        f"INSS patronal ({calc.employer_charge_percentage:g}% sobre "
        f"{format_brl(calc.employer_charge_base)}): {format_brl(calc.employer_charge_amount)}\n"
        f"TOTAL GERAL DO DEBITO: {format_brl(calc.grand_total)}"
    )


def format_result_summary(calc: Calculation, filename: str = "") -> str:
    header = f"Arquivo: {filename}\n" if filename else ""
    if not calc.is_calculation_possible:
        return (
            f"{header}Nao foi possivel realizar a liquidacao.\n"
            f"Motivo: {calc.error_reason or 'nao informado'}"
        )

    lines = [
        f"{header}DEMONSTRATIVO DE LIQUIDACAO",
        f"Processo: {calc.case_number or 'N/I'}",
        f"Reclamante: {calc.claimant}",
        f"Reclamada: {calc.respondent}",
    ]
    if calc.period_start or calc.period_end:
        lines.append(f"Periodo: {calc.period_start or '-'} a {calc.period_end or '-'}")
    lines.append("")
    lines.append(f"Verbas ({len(calc.line_items)}):")
    for i, item in enumerate(calc.line_items, 1):
        months = f", {len(item.monthly_breakdown)} meses" if item.monthly_breakdown else ""
        lines.append(
            f"{i}. [{nature_label(item.nature)}] {item.description}\n"
            f"   corrigido {format_brl(item.corrected_amount)} + juros {format_brl(item.interest)}"
            f" = {format_brl(item.total)}{months}"
        )
    lines.append("")
    lines.append(format_totals(calc))
    if calc.observation:
        lines.append(f"\nObservacoes: {calc.observation}")
    return "\n".join(lines)


def format_queue(session: CalculationSession) -> str:
    if not session.queue:
        return "Fila vazia. Envia um PDF ou imagem do processo."
    lines = ["Processos em analise:"]
    for i, f in enumerate(session.queue, 1):
        lines.append(f"{i}. {f.name} ({f.size_mb:.2f} MB)")
    lines.append("")
    lines.append(f"Instrucoes: {session.instructions or '-'}")
    lines.append(f"INSS patronal: {session.employer_percentage}%")
    lines.append(f"Modelo: {session.model_variant}")
    return "\n".join(lines)


# --- Keyboards ---


def _queue_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([[
        InlineKeyboardButton("Iniciar liquidacao", callback_data="calc_run"),
        InlineKeyboardButton("Limpar", callback_data="calc_clear"),
    ]])


def _result_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([
        [
            InlineKeyboardButton("Excel (.xlsx)", callback_data="calc_export:excel"),
            InlineKeyboardButton("PDF (.pdf)", callback_data="calc_export:pdf"),
        ],
        [InlineKeyboardButton("Ajuste pericial", callback_data="calc_edit")],
    ])


def _history_export_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([[
        InlineKeyboardButton("Excel (.xlsx)", callback_data="calc_hist_export:excel"),
        InlineKeyboardButton("PDF (.pdf)", callback_data="calc_hist_export:pdf"),
    ]])


def _history_keyboard(entries: list[HistoryEntry]) -> InlineKeyboardMarkup:
    buttons = []
    for i, entry in enumerate(entries[:HISTORY_PAGE_SIZE], 1):
        label = f"{i}. {entry.filename[:28]}"
        buttons.append([InlineKeyboardButton(label, callback_data=f"calc_open:{entry.id}")])
    buttons.append([
        InlineKeyboardButton("Exportar Excel", callback_data="calc_hist_export:excel"),
        InlineKeyboardButton("Exportar PDF", callback_data="calc_hist_export:pdf"),
    ])
    return InlineKeyboardMarkup(buttons)


# --- Commands ---


async def cmd_start(update: Update, context: ContextTypes.DEFAULT_TYPE):
    if not is_authorized(update.effective_user.id):
        await update.message.reply_text("Acesso nao autorizado.")
        return
    session = get_session(update, context)
    await update.message.reply_text(HELP_TEXT.format(
        limit=config.MAX_FILE_SIZE_MB, pct=session.employer_percentage, model=session.model_variant,
    ))


cmd_help = cmd_start


async def cmd_queue(update: Update, context: ContextTypes.DEFAULT_TYPE):
    if not is_authorized(update.effective_user.id):
        return
    session = get_session(update, context)
    markup = _queue_keyboard() if session.queue else None
    await update.message.reply_text(format_queue(session), reply_markup=markup)


async def cmd_remove(update: Update, context: ContextTypes.DEFAULT_TYPE):
    if not is_authorized(update.effective_user.id):
        return
    session = get_session(update, context)
    if not context.args or not context.args[0].isdigit():
        await update.message.reply_text("Uso: /remove <numero do arquivo na fila>")
        return
    index = int(context.args[0]) - 1
    if not 0 <= index < len(session.queue):
        await update.message.reply_text("Arquivo nao encontrado na fila.")
        return
    removed = session.queue[index]
    session.queue = remove_file(session.queue, index)
    await update.message.reply_text(f"Removido: {removed.name}\n\n{format_queue(session)}")


async def cmd_clear(update: Update, context: ContextTypes.DEFAULT_TYPE):
    if not is_authorized(update.effective_user.id):
        return
    get_session(update, context).clear_selection()
    await update.effective_chat.send_message("Fila e resultado atual limpos.")


async def cmd_instructions(update: Update, context: ContextTypes.DEFAULT_TYPE):
    if not is_authorized(update.effective_user.id):
        return
    session = get_session(update, context)
    text = " ".join(context.args or []).strip()
    if not text:
        await update.message.reply_text(
            f"Instrucoes atuais: {session.instructions or '-'}\n\n"
            "Uso: /instructions Calcular HE com adicional de 100%, salario base de R$ 3.500"
        )
        return
    session.instructions = text
    await update.message.reply_text("Instrucoes periciais registadas para a proxima liquidacao.")


async def cmd_employer_pct(update: Update, context: ContextTypes.DEFAULT_TYPE):
    if not is_authorized(update.effective_user.id):
        return
    session = get_session(update, context)
    if not context.args:
        await update.message.reply_text(f"INSS patronal atual: {session.employer_percentage}%\nUso: /employer_pct 23")
        return
    value = parse_number(context.args[0], default=-1.0)
    if not 0 <= value <= 100:
        await update.message.reply_text("Percentual invalido. Usa um valor entre 0 e 100.")
        return
    session.employer_percentage = f"{value:g}"
    await update.message.reply_text(f"INSS patronal definido em {session.employer_percentage}%.")


async def cmd_model(update: Update, context: ContextTypes.DEFAULT_TYPE):
    if not is_authorized(update.effective_user.id):
        return
    session = get_session(update, context)
    choice = (context.args[0].lower() if context.args else "")
    if choice not in MODEL_VARIANTS:
        await update.message.reply_text(
            f"Modelo atual: {session.model_variant}\nUso: /model preciso (mais lento) ou /model rapido"
        )
        return
    session.model_variant = choice
    await update.message.reply_text(f"Modelo definido: {choice}")


# --- Uploads ---


async def _queue_files(update: Update, context: ContextTypes.DEFAULT_TYPE, candidates: list[QueuedFile]):
    session = get_session(update, context)
    outcome = add_files(session.queue, candidates, config.MAX_FILE_SIZE_BYTES)
    session.queue = outcome.queue
    if outcome.accepted:
        session.current = None
        session.current_entry_id = None
        session.editing = False
        session.snapshot = None

    for _, reason in outcome.rejected:
        await update.message.reply_text(reason)
    if outcome.accepted:
        await update.message.reply_text(
            f"{format_queue(session)}\n\nUsa /instructions para orientar o calculo ou inicia ja.",
            reply_markup=_queue_keyboard(),
        )


async def handle_document_upload(update: Update, context: ContextTypes.DEFAULT_TYPE):
    if not is_authorized(update.effective_user.id):
        await update.message.reply_text("Acesso nao autorizado.")
        return
    document = update.message.document
    candidate = QueuedFile(
        name=document.file_name or f"documento_{datetime.now().strftime('%Y%m%d_%H%M%S')}",
        size=document.file_size or 0,
        mime_type=(document.mime_type or "").lower(),
        file_id=document.file_id,
    )
    await _queue_files(update, context, [candidate])


async def handle_photo_upload(update: Update, context: ContextTypes.DEFAULT_TYPE):
    if not is_authorized(update.effective_user.id):
        await update.message.reply_text("Acesso nao autorizado.")
        return
    photo = update.message.photo[-1]  # highest resolution
    candidate = QueuedFile(
        name=f"foto_{photo.file_unique_id}.jpg",
        size=photo.file_size or 0,
        mime_type="image/jpeg",
        file_id=photo.file_id,
    )
    await _queue_files(update, context, [candidate])


# --- Processing ---


async def _run_queue(update: Update, context: ContextTypes.DEFAULT_TYPE):
    session = get_session(update, context)
    chat = update.effective_chat

    if not session.queue:
        await chat.send_message("Fila vazia. Envia um PDF ou imagem do processo primeiro.")
        return
    if session.editing:
        await chat.send_message("Termina o ajuste pericial (/save ou /cancel) antes de nova liquidacao.")
        return

    session.current = None
    session.current_entry_id = None

    async def download(queued: QueuedFile) -> bytes:
        tg_file = await context.bot.get_file(queued.file_id)
        return bytes(await tg_file.download_as_bytearray())

    async def progress(position: int, total: int, queued: QueuedFile):
        await chat.send_message(f"Liquidando {position} de {total}: {queued.name}")
        await chat.send_action(ChatAction.TYPING)

    report = await process_queue(
        list(session.queue),
        extract=extract_calculation,
        download=download,
        history=session.history,
        instructions=session.instructions,
        employer_percentage=session.employer_percentage,
        variant=session.model_variant,
        on_progress=progress,
    )

    session.queue = remaining_queue(session.queue, report)
    session.reset_inputs()

    for entry in report.entries:
        markup = _result_keyboard() if entry.result.is_calculation_possible else None
        await send_long(update, format_result_summary(entry.result, entry.filename), reply_markup=markup)
    if report.entries:
        session.select_entry(report.entries[-1])

    if report.quota_exceeded:
        await chat.send_message(
            "Limite de operacao excedido.\n"
            f"{report.error}\n\n"
            f"{len(session.queue)} arquivo(s) continuam na fila. "
            "Aguarda 60 segundos antes de tentar de novo com /calculate."
        )
    elif report.error:
        await chat.send_message(report.error)
    else:
        await chat.send_message("Liquidacao concluida!")


async def cmd_calculate(update: Update, context: ContextTypes.DEFAULT_TYPE):
    if not is_authorized(update.effective_user.id):
        return
    try:
        await _run_queue(update, context)
    except Exception as e:
        logger.error(f"Error running calculation queue: {e}", exc_info=True)
        await update.message.reply_text(f"Erro ao processar a liquidacao: {str(e)}")


# --- History ---


async def cmd_history(update: Update, context: ContextTypes.DEFAULT_TYPE):
    if not is_authorized(update.effective_user.id):
        return
    session = get_session(update, context)
    entries = session.history.all()
    if not entries:
        await update.message.reply_text("Nenhum calculo foi realizado ainda.")
        return

    lines = [f"Historico ({len(entries)}):"]
    for i, entry in enumerate(entries, 1):
        marker = " <" if entry.id == session.current_entry_id else ""
        status = format_brl(entry.result.grand_total) if entry.result.is_calculation_possible else "falhou"
        lines.append(f"{i}. {entry.filename} - {entry.created.strftime('%d/%m/%Y %H:%M')} - {status}{marker}")
    lines.append("\nUsa /open <n> para abrir.")
    await send_long(update, "\n".join(lines), reply_markup=_history_keyboard(entries))


async def _open_entry(update: Update, session: CalculationSession, entry: HistoryEntry):
    session.select_entry(entry)
    markup = _result_keyboard() if entry.result.is_calculation_possible else None
    await send_long(update, format_result_summary(entry.result, entry.filename), reply_markup=markup)


async def cmd_open(update: Update, context: ContextTypes.DEFAULT_TYPE):
    if not is_authorized(update.effective_user.id):
        return
    session = get_session(update, context)
    entries = session.history.all()
    if not context.args or not context.args[0].isdigit():
        await update.message.reply_text("Uso: /open <numero no historico>")
        return
    index = int(context.args[0]) - 1
    if not 0 <= index < len(entries):
        await update.message.reply_text("Liquidacao nao encontrada no historico.")
        return
    await _open_entry(update, session, entries[index])


async def cmd_clear_history(update: Update, context: ContextTypes.DEFAULT_TYPE):
    if not is_authorized(update.effective_user.id):
        return
    session = get_session(update, context)
    session.history.clear()
    session.current = None
    session.current_entry_id = None
    session.editing = False
    session.snapshot = None
    await update.message.reply_text("Historico apagado.")


# --- Export ---


async def _send_export(update: Update, session: CalculationSession, fmt: str):
    calc = session.current
    if calc is None:
        await update.effective_chat.send_message("Nenhuma liquidacao aberta. Usa /history ou /calculate.")
        return
    entry = session.current_entry
    source_name = entry.filename if entry else calc.case_number

    await update.effective_chat.send_message(f"A gerar {fmt.upper()}...")
    with tempfile.TemporaryDirectory() as tmp_dir:
        if fmt == "excel":
            out = export_calculation_excel(calc, Path(tmp_dir) / excel_filename(source_name))
        else:
            out = export_calculation_pdf(calc, Path(tmp_dir) / pdf_filename(calc))
        with open(out, "rb") as f:
            await update.effective_chat.send_document(
                document=f, filename=out.name,
                caption=f"Liquidacao: {calc.claimant or source_name} ({format_brl(calc.grand_total)})",
            )


async def _send_history_export(update: Update, session: CalculationSession, fmt: str):
    entries = session.history.all()
    if not entries:
        await update.effective_chat.send_message("Historico vazio.")
        return

    await update.effective_chat.send_message(f"A gerar {fmt.upper()} consolidado...")
    with tempfile.TemporaryDirectory() as tmp_dir:
        if fmt == "excel":
            out = export_history_excel(entries, Path(tmp_dir) / CONSOLIDATED_EXCEL_NAME)
        else:
            out = export_calculations_pdf([e.result for e in entries], Path(tmp_dir) / CONSOLIDATED_PDF_NAME)
        with open(out, "rb") as f:
            await update.effective_chat.send_document(
                document=f, filename=out.name, caption=f"Historico: {len(entries)} liquidacoes",
            )


async def cmd_export(update: Update, context: ContextTypes.DEFAULT_TYPE):
    if not is_authorized(update.effective_user.id):
        return
    session = get_session(update, context)
    if session.current is None:
        await update.message.reply_text("Nenhuma liquidacao aberta. Usa /history ou /calculate.")
        return
    await update.message.reply_text("Escolhe o formato:", reply_markup=_result_keyboard())


async def cmd_export_history(update: Update, context: ContextTypes.DEFAULT_TYPE):
    if not is_authorized(update.effective_user.id):
        return
    session = get_session(update, context)
    if not len(session.history):
        await update.message.reply_text("Historico vazio.")
        return
    await update.message.reply_text("Escolhe o formato:", reply_markup=_history_export_keyboard())


# --- Callbacks ---


async def handle_calc_callback(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Inline keyboard presses: run queue, open history entry, exports."""
    query = update.callback_query
    await query.answer()

    if not is_authorized(query.from_user.id):
        return

    session = get_session(update, context)
    data = query.data or ""

    try:
        if data == "calc_run":
            await query.edit_message_reply_markup(reply_markup=None)
            await _run_queue(update, context)
        elif data == "calc_clear":
            session.clear_selection()
            await query.edit_message_text("Fila e resultado atual limpos.")
        elif data == "calc_edit":
            from liquidacao.handlers.editing import start_edit
            await start_edit(update, session)
        elif data.startswith("calc_open:"):
            entry = session.history.get(data.split(":", 1)[1])
            if entry is None:
                await query.edit_message_text("Liquidacao nao encontrada no historico.")
                return
            await _open_entry(update, session, entry)
        elif data.startswith("calc_export:"):
            await _send_export(update, session, data.split(":", 1)[1])
        elif data.startswith("calc_hist_export:"):
            await _send_history_export(update, session, data.split(":", 1)[1])
    except Exception as e:
        logger.error(f"Callback {data} failed: {e}", exc_info=True)
        await update.effective_chat.send_message(f"Erro: {str(e)}")
