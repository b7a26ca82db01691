"""App — coração do relay: serviços, casos de uso e infraestrutura.

Subpastas:
- bootstrap/: composition root (factories, inicialização, wiring)
- use_cases/: casos de uso (polling de comentários, eventos de webhook)
- services/: TokenPool, DeliveryGate e utilitários de aplicação
- infra/: implementações concretas de IO (stores, sinks)
- protocols/: contratos/interfaces
- domain/: modelos de domínio (credencial)
- observability/: correlation_id

Padrão: app executa; api adapta; fsm governa; utils apoia.
"""
