"""Service catalog and the checklist template for each service type."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ServiceCategory:
    name: str
    services: tuple[str, ...]


SERVICE_CATALOG: tuple[ServiceCategory, ...] = (
    ServiceCategory(
        name="Serviços de Veículos",
        services=(
            "Licenciamento anual de veículos",
            "Transferência de propriedade",
            "Segunda via de documentos (CRLV, CRV)",
            "Mudança de endereço no documento do veículo",
            "Inclusão/exclusão de alienação fiduciária",
            "Baixa de veículos (sucata, furto/roubo)",
            "Alteração de características do veículo",
            "Emplacamento de veículos novos e usados",
        ),
    ),
    ServiceCategory(
        name="Serviços de CNH (Carteira Nacional de Habilitação)",
        services=(
            "Primeira habilitação",
            "Renovação de CNH",
            "Mudança de categoria (adição/ampliação)",
            "Segunda via de CNH",
            "Alteração de dados na CNH",
            "Transferência de CNH para outro estado",
            "Recurso de multas e penalidades",
            "Curso de reciclagem para condutores",
        ),
    ),
    ServiceCategory(
        name="Serviços de Multas e Infrações",
        services=(
            "Consulta de multas e pontuação",
            "Recursos de multas de trânsito",
            "Defesa prévia e JARI",
            "Parcelamento de multas",
            "Indicação de condutor infrator",
            "Conversão de multa em advertência",
        ),
    ),
    ServiceCategory(
        name="Serviços Complementares",
        services=(
            "Agendamento de serviços no DETRAN",
            "Orientação sobre documentação necessária",
            "Acompanhamento de processos",
            "Consultoria em legislação de trânsito",
            "Entrega de documentos em domicílio",
            "Atendimento personalizado para empresas com frotas",
        ),
    ),
)

CHECKLIST_TEMPLATES: dict[str, tuple[str, ...]] = {
    "transferência de propriedade": (
        "Conferir CRV assinado e com firma reconhecida",
        "Solicitar vistoria veicular",
        "Emitir guia e pagar taxa de transferência",
        "Protocolar processo no DETRAN",
        "Retirar novo CRV/CRLV",
        "Entregar documentos ao cliente",
    ),
    "licenciamento anual de veículos": (
        "Consultar débitos e multas",
        "Pagar IPVA e taxa de licenciamento",
        "Emitir CRLV digital",
        "Enviar documento ao cliente",
    ),
    "renovação de cnh": (
        "Agendar exame médico",
        "Pagar taxa de renovação",
        "Acompanhar emissão da nova CNH",
        "Entregar CNH ao cliente",
    ),
    "segunda via de documentos (crlv, crv)": (
        "Registrar boletim de ocorrência, se aplicável",
        "Pagar taxa de segunda via",
        "Protocolar pedido no DETRAN",
        "Retirar documento emitido",
    ),
    "emplacamento de veículos novos e usados": (
        "Conferir nota fiscal e documentos do proprietário",
        "Realizar vistoria",
        "Pagar taxas de emplacamento",
        "Instalar placas",
    ),
}


def catalog_service_names() -> list[str]:
    """Flat list of every service offered, in catalog order."""
    return [name for category in SERVICE_CATALOG for name in category.services]


def checklist_template(service_name: str) -> tuple[str, ...]:
    """Return the task list for a service type; empty when none is defined."""
    return CHECKLIST_TEMPLATES.get(service_name.strip().lower(), ())
