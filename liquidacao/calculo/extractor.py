"""Settlement extraction and calculation using the Claude API.

The model reads the lawsuit (PDF or image), extracts every claim and
returns the full calculation as JSON. This module only builds the
request, retries on quota errors and parses the answer.
"""

from __future__ import annotations

import base64
import json
import logging
from datetime import date

from anthropic import AsyncAnthropic

import config
from liquidacao.calculo.models import SOURCE_AI, Calculation, parse_number
from liquidacao.calculo.retry import QuotaExceededError, with_quota_retry

logger = logging.getLogger(__name__)

VARIANT_PRECISE = "preciso"
VARIANT_FAST = "rapido"
MODEL_VARIANTS = (VARIANT_PRECISE, VARIANT_FAST)

RESPONSE_SCHEMA = """{
  "claimant": "Nome do reclamante",
  "respondent": "Nome da reclamada",
  "case_number": "Numero do processo",
  "filing_date": "DD/MM/AAAA",
  "settlement_date": "DD/MM/AAAA",
  "period_start": "DD/MM/AAAA",
  "period_end": "DD/MM/AAAA",
  "line_items": [
    {
      "description": "Descricao completa do pedido (ex: h) FGTS + 40%)",
      "nature": "salarial ou indenizatoria",
      "nominal_amount": 0.0,
      "corrected_amount": 0.0,
      "interest": 0.0,
      "total": 0.0,
      "monthly_breakdown": [
        {
          "reference": "MM/AAAA ou referencia do calculo",
          "calculation_base": 0.0,
          "quantity": 0.0,
          "unit": "",
          "nominal_amount": 0.0,
          "index": 1.0,
          "corrected_amount": 0.0,
          "interest": 0.0,
          "total": 0.0
        }
      ]
    }
  ],
  "corrected_total": 0.0,
  "interest_total": 0.0,
  "gross_total": 0.0,
  "social_security": 0.0,
  "income_tax": 0.0,
  "severance_fund": 0.0,
  "net_total": 0.0,
  "monetary_correction": 0.0,
  "interest_details": [
    {"period": "", "index_name": "SELIC", "correction_amount": 0.0, "interest_amount": 0.0}
  ],
  "fee_percentage": 0.0,
  "fee_amount": 0.0,
  "employer_charge_base": 0.0,
  "employer_charge_percentage": 0.0,
  "employer_charge_amount": 0.0,
  "grand_total": 0.0,
  "is_calculation_possible": true,
  "error_reason": "",
  "calculation_source": "AI_CALCULATED ou CLAIMANT_PROVIDED_BASIS",
  "observation": ""
}"""

CALCULATION_PROMPT = """### PROTOCOLO DE LIQUIDACAO TECNICA JUDICIAL
Voce e um Perito Contador do Juizo. Sua analise deve ser exaustiva, precisa e baseada em prova documental.

### REGRAS DE PROCESSAMENTO
1. VARREDURA TOTAL: inclua CADA pedido da sintese dos pedidos (da letra 'a' ate a ultima alinea, ex: 'hh'). Pular itens e erro pericial grave.
2. MEMORIA DE CALCULO MENSAL: para cada rubrica, 'monthly_breakdown' NAO pode ser vazio.
   - Verba rescisoria: demonstre o calculo na competencia do desligamento.
   - Verba mensal: liste mes a mes no periodo do contrato.
   - Mostre a prova aritmetica: base x quantidade x adicionais.
3. VALORES: use preferencialmente os valores indicados na inicial como principal nominal.
4. TAXAS E IMPOSTOS:
   - INSS (social_security): tabela progressiva oficial.
   - IRRF (income_tax): sistematica RRA.
   - Atualizacao: SELIC conforme ADC 58 STF (data base: {today}).
5. Em cada linha mensal, total = corrected_amount + interest. Em cada rubrica, os totais sao a soma das linhas.
6. gross_total = corrected_total + interest_total; grand_total = gross_total + fee_amount + employer_charge_amount.
7. Se o documento nao permitir o calculo, responda com is_calculation_possible = false e explique em error_reason.

DIRETRIZES DO PERITO: {instructions}
INSS PATRONAL (employer_charge_percentage): {employer_percentage}%

Responda APENAS com JSON valido nesta estrutura exata (valores monetarios como numeros, nao strings):
{schema}"""

_client: AsyncAnthropic | None = None


class ExtractionError(Exception):
    """The model call failed for a reason other than quota."""


def _get_client() -> AsyncAnthropic:
    global _client
    if _client is None:
        if not config.ANTHROPIC_API_KEY:
            raise ValueError("ANTHROPIC_API_KEY not configured")
        # retries happen only in with_quota_retry
        _client = AsyncAnthropic(
            api_key=config.ANTHROPIC_API_KEY,
            timeout=config.AI_TIMEOUT_SECONDS,
            max_retries=0,
        )
    return _client


def build_prompt(instructions: str, employer_percentage: str, today: date | None = None) -> str:
    today = today or date.today()
    return CALCULATION_PROMPT.format(
        today=today.strftime("%d/%m/%Y"),
        instructions=instructions.strip() or "Nenhuma",
        employer_percentage=employer_percentage or config.DEFAULT_EMPLOYER_CHARGE_PERCENT,
        schema=RESPONSE_SCHEMA,
    )


def build_content(payload: bytes, mime_type: str, prompt: str) -> list[dict]:
    """Document block (PDF) or image block, followed by the instructions."""
    data = base64.standard_b64encode(payload).decode("utf-8")
    block_type = "document" if mime_type == "application/pdf" else "image"
    return [
        {
            "type": block_type,
            "source": {"type": "base64", "media_type": mime_type, "data": data},
        },
        {"type": "text", "text": prompt},
    ]


def build_request(content: list[dict], variant: str) -> dict:
    kwargs = {
        "max_tokens": config.AI_MAX_TOKENS,
        "messages": [{"role": "user", "content": content}],
    }
    if variant == VARIANT_PRECISE:
        kwargs["model"] = config.CLAUDE_MODEL
        kwargs["thinking"] = {"type": "enabled", "budget_tokens": config.THINKING_BUDGET_TOKENS}
    else:
        kwargs["model"] = config.CLAUDE_FAST_MODEL
    return kwargs


def parse_response_text(text: str) -> Calculation:
    """Parse the model's JSON answer, tolerating markdown code fences."""
    text = text.strip()
    if "```" in text:
        json_part = text.split("```")[1]
        if json_part.startswith("json"):
            json_part = json_part[4:]
        text = json_part.strip()

    data = json.loads(text or "{}")
    if not isinstance(data, dict):
        raise ValueError("Resposta da IA nao e um objeto JSON")
    return Calculation.from_dict(data)


def _response_text(response) -> str:
    return "".join(getattr(b, "text", "") for b in response.content if getattr(b, "type", "text") == "text")


def finalize_result(calc: Calculation, instructions: str, employer_percentage: str) -> Calculation:
    """Fill the fields the user controls, after the model has answered."""
    if not calc.observation:
        calc.observation = instructions
    if not calc.calculation_source and calc.is_calculation_possible:
        calc.calculation_source = SOURCE_AI
    user_pct = parse_number(employer_percentage)
    if user_pct:
        calc.employer_charge_percentage = user_pct
    return calc


async def extract_calculation(
    payload: bytes,
    mime_type: str,
    *,
    instructions: str = "",
    employer_percentage: str = "",
    variant: str = VARIANT_FAST,
    client=None,
) -> Calculation:
    """Send one document to the model and return its settlement calculation.

    Raises QuotaExceededError when the quota never frees up, and
    ExtractionError for anything else that goes wrong.
    """
    prompt = build_prompt(instructions, employer_percentage)
    request = build_request(build_content(payload, mime_type, prompt), variant)

    try:
        client = client or _get_client()

        async def _call():
            response = await client.messages.create(**request)
            return _response_text(response)

        text = await with_quota_retry(_call)
        calc = parse_response_text(text)
    except QuotaExceededError:
        raise
    except Exception as e:
        logger.error(f"Calculation extraction failed: {e}")
        reason = str(e) or "O servidor de pericia nao conseguiu decompor todos os itens. Tente novamente."
        raise ExtractionError(f"Erro critico na liquidacao: {reason}") from e

    logger.info(
        f"Model {request['model']} returned {len(calc.line_items)} line items "
        f"(possible={calc.is_calculation_possible})"
    )
    return finalize_result(calc, instructions, employer_percentage)
