"""Connectors — adapters de borda para APIs externas.

Estrutura:
- github/: API REST do GitHub (pool de tokens, retry, GitHub App)

Cada upstream tem seu próprio connector, garantindo SRP e isolamento de falhas.
"""

__all__: list[str] = []
