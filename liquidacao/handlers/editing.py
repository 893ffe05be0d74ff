"""Telegram handlers for manual adjustment (ajuste pericial) of the open calculation."""

from __future__ import annotations

import logging

from telegram import Update
from telegram.ext import ContextTypes

from liquidacao.calculo import editing
from liquidacao.calculo.formatting import format_brl, nature_label
from liquidacao.calculo.recalculate import recalculate
from liquidacao.calculo.session import CalculationSession
from liquidacao.handlers.calculations import format_totals, get_session, is_authorized, send_long

logger = logging.getLogger(__name__)


def format_edit_view(session: CalculationSession) -> str:
    """Numbered view of the calculation so /item and /month positions are easy to find."""
    calc = session.current
    lines = [
        "AJUSTE PERICIAL",
        f"Reclamante: {calc.claimant}",
        f"Reclamada: {calc.respondent}",
        f"Processo: {calc.case_number or 'N/I'}",
        "",
    ]
    for i, item in enumerate(calc.line_items, 1):
        lines.append(
            f"{i}. [{nature_label(item.nature)}] {item.description} "
            f"nominal {format_brl(item.nominal_amount)} | corrigido {format_brl(item.corrected_amount)} "
            f"| juros {format_brl(item.interest)} | total {format_brl(item.total)}"
        )
        for m, row in enumerate(item.monthly_breakdown, 1):
            lines.append(
                f"   {i}.{m} {row.reference or '-'} base {format_brl(row.calculation_base)} "
                f"nominal {format_brl(row.nominal_amount)} x {row.index:.6f} = {format_brl(row.corrected_amount)} "
                f"+ juros {format_brl(row.interest)}"
            )
    lines.append("")
    lines.append(format_totals(calc))
    lines.append("\n/save para guardar, /cancel para descartar.")
    return "\n".join(lines)


async def start_edit(update: Update, session: CalculationSession):
    chat = update.effective_chat
    if session.current is None:
        await chat.send_message("Nenhuma liquidacao aberta. Usa /history ou /calculate.")
        return
    if not session.current.is_calculation_possible:
        await chat.send_message("Esta liquidacao falhou e nao pode ser ajustada.")
        return
    if not session.editing:
        session.start_edit()
    await send_long(update, format_edit_view(session))


async def _require_editing(update: Update, context: ContextTypes.DEFAULT_TYPE) -> CalculationSession | None:
    if not is_authorized(update.effective_user.id):
        return None
    session = get_session(update, context)
    if not session.editing or session.current is None:
        await update.message.reply_text("Nenhum ajuste em curso. Usa /edit primeiro.")
        return None
    return session


async def _apply(update: Update, session: CalculationSession, updated):
    """Store the edit and recompute; only report totals when something moved."""
    if updated is session.current:
        await update.message.reply_text("Campo ou posicao invalida. Nada foi alterado.")
        return
    result, changed = recalculate(updated)
    session.current = result
    if changed:
        await update.message.reply_text(f"Totais atualizados:\n\n{format_totals(result)}")
    else:
        await update.message.reply_text("Alteracao registada.")


def _position(value: str) -> int:
    return int(value) - 1 if value.isdigit() else -1


async def cmd_edit(update: Update, context: ContextTypes.DEFAULT_TYPE):
    if not is_authorized(update.effective_user.id):
        return
    await start_edit(update, get_session(update, context))


async def cmd_set(update: Update, context: ContextTypes.DEFAULT_TYPE):
    session = await _require_editing(update, context)
    if session is None:
        return
    if len(context.args or []) < 2:
        await update.message.reply_text("Uso: /set <campo> <valor>\nEx: /set inss 1234,56")
        return
    key, raw = context.args[0], " ".join(context.args[1:])
    await _apply(update, session, editing.set_field(session.current, key, raw))


async def cmd_item(update: Update, context: ContextTypes.DEFAULT_TYPE):
    session = await _require_editing(update, context)
    if session is None:
        return
    args = context.args or []
    if len(args) < 3:
        await update.message.reply_text("Uso: /item <n> <campo> <valor>\nEx: /item 2 juros 150,00")
        return
    index, key, raw = _position(args[0]), args[1], " ".join(args[2:])
    if 0 <= index < len(session.current.line_items):
        if editing.is_derived_field(session.current.line_items[index], key):
            await update.message.reply_text(
                "Esta verba tem memoria mensal: o valor e a soma das competencias. "
                "Ajusta as linhas com /month."
            )
            return
    await _apply(update, session, editing.set_line_item_field(session.current, index, key, raw))


async def cmd_month(update: Update, context: ContextTypes.DEFAULT_TYPE):
    session = await _require_editing(update, context)
    if session is None:
        return
    args = context.args or []
    if len(args) < 4:
        await update.message.reply_text("Uso: /month <n> <m> <campo> <valor>\nEx: /month 1 3 indice 1,0234")
        return
    updated = editing.set_breakdown_field(
        session.current, _position(args[0]), _position(args[1]), args[2], " ".join(args[3:]),
    )
    await _apply(update, session, updated)


async def cmd_add_item(update: Update, context: ContextTypes.DEFAULT_TYPE):
    session = await _require_editing(update, context)
    if session is None:
        return
    description = " ".join(context.args or [])
    await _apply(update, session, editing.add_line_item(session.current, description))


async def cmd_del_item(update: Update, context: ContextTypes.DEFAULT_TYPE):
    session = await _require_editing(update, context)
    if session is None:
        return
    if not context.args:
        await update.message.reply_text("Uso: /del_item <n>")
        return
    await _apply(update, session, editing.remove_line_item(session.current, _position(context.args[0])))


async def cmd_add_month(update: Update, context: ContextTypes.DEFAULT_TYPE):
    session = await _require_editing(update, context)
    if session is None:
        return
    if not context.args:
        await update.message.reply_text("Uso: /add_month <n>")
        return
    await _apply(update, session, editing.add_breakdown_row(session.current, _position(context.args[0])))


async def cmd_del_month(update: Update, context: ContextTypes.DEFAULT_TYPE):
    session = await _require_editing(update, context)
    if session is None:
        return
    args = context.args or []
    if len(args) < 2:
        await update.message.reply_text("Uso: /del_month <n> <m>")
        return
    updated = editing.remove_breakdown_row(session.current, _position(args[0]), _position(args[1]))
    await _apply(update, session, updated)


async def cmd_save(update: Update, context: ContextTypes.DEFAULT_TYPE):
    session = await _require_editing(update, context)
    if session is None:
        return
    if session.save_edit():
        logger.info(f"Saved manual adjustment for entry {session.current_entry_id}")
        await update.message.reply_text("Ajuste guardado no historico.")
    else:
        await update.message.reply_text("Liquidacao nao encontrada no historico. O ajuste ficou apenas na sessao.")


async def cmd_cancel(update: Update, context: ContextTypes.DEFAULT_TYPE):
    session = await _require_editing(update, context)
    if session is None:
        return
    session.cancel_edit()
    await update.message.reply_text("Ajuste descartado.")
