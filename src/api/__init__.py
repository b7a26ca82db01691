"""API — camada de borda: acesso ao upstream e rotas HTTP.

Responsabilidades:
- Executar chamadas autenticadas à API do GitHub
- Classificar falhas do upstream em erros tipados
- Expor endpoints HTTP de health/readiness

Subpastas:
- connectors/: adapters HTTP por upstream
- routes/: endpoints HTTP (health, readiness)

NÃO PODE conter: FSM, regras do gate, orquestração de use cases.
"""
