"""
Regras de transição válidas entre modos de entrega.

TEMPORARY_POLLING -> TEMPORARY_POLLING é a extensão da janela de
recuperação. Não há modo terminal.
"""

from fsm.states.delivery import DeliveryMode

# Tipagem explícita do mapa de transições
TransitionMap = dict[DeliveryMode, frozenset[DeliveryMode]]

# Chave: modo de origem
# Valor: conjunto de modos de destino permitidos
VALID_TRANSITIONS: TransitionMap = {
    # WEBHOOK_PRIMARY: falha no caminho push ou integração removida
    DeliveryMode.WEBHOOK_PRIMARY: frozenset({
        DeliveryMode.TEMPORARY_POLLING,
        DeliveryMode.POLLING_PRIMARY,
    }),

    # POLLING_PRIMARY: só sai quando a integração push é detectada
    DeliveryMode.POLLING_PRIMARY: frozenset({
        DeliveryMode.WEBHOOK_PRIMARY,
    }),

    # TEMPORARY_POLLING: webhook recebido, janela expirada, extensão ou
    # integração removida
    DeliveryMode.TEMPORARY_POLLING: frozenset({
        DeliveryMode.WEBHOOK_PRIMARY,
        DeliveryMode.TEMPORARY_POLLING,
        DeliveryMode.POLLING_PRIMARY,
    }),
}


def get_valid_targets(mode: DeliveryMode) -> frozenset[DeliveryMode]:
    """Retorna os modos de destino válidos para um modo de origem."""
    return VALID_TRANSITIONS.get(mode, frozenset())


def is_transition_valid(from_mode: DeliveryMode, to_mode: DeliveryMode) -> bool:
    return to_mode in get_valid_targets(from_mode)


def validate_transition_map() -> list[str]:
    """
    Valida a integridade do mapa de transições.

    Verifica:
    - Todos os modos do enum estão no mapa
    - Todo modo é alcançável a partir de outro modo

    Returns:
        Lista de erros encontrados (vazia se válido)
    """
    errors: list[str] = []

    for mode in DeliveryMode:
        if mode not in VALID_TRANSITIONS:
            errors.append(f"Modo {mode.name} ausente em VALID_TRANSITIONS")

    reachable = {
        target
        for source, targets in VALID_TRANSITIONS.items()
        for target in targets
        if target != source
    }
    for mode in DeliveryMode:
        if mode not in reachable:
            errors.append(f"Modo {mode.name} inalcançável")

    return errors
