"""
Constantes do sistema.

Valores fixos de projeto (nao configuraveis por ambiente): backoff da
sessao, cadencia de envio em massa e formato de enderecamento.
"""

# =============================================================================
# Sessao - inicializacao
# =============================================================================

# Tentativas com backoff exponencial antes do cooldown longo
INIT_MAX_RETRIES = 3

# delay = min(MAX, BASE * 2^tentativa) em segundos
INIT_BACKOFF_BASE_SECONDS = 10
INIT_BACKOFF_MAX_SECONDS = 60

# Espera apos esgotar as tentativas (30 minutos)
INIT_COOLDOWN_SECONDS = 30 * 60

# =============================================================================
# Sessao - reconexao
# =============================================================================

# Espera fixa apos auth_failure / disconnected
RECONNECT_DELAY_SECONDS = 10

# Motivos de desconexao que invalidam a credencial salva
CREDENTIAL_INVALIDATING_REASONS = frozenset({"logout", "banned"})

# =============================================================================
# Envio
# =============================================================================

# Intervalo aleatorio entre mensagens de um envio em massa [min, max)
BULK_DELAY_MIN_SECONDS = 3.0
BULK_DELAY_MAX_SECONDS = 5.0

# Enderecamento de destinatarios
MIN_RECIPIENT_DIGITS = 10
ADDRESS_SUFFIX = "@c.us"

# =============================================================================
# Notificacoes
# =============================================================================

EVENT_QR = "qr"
EVENT_STATUS = "status"

STATUS_QR_READY = "QR Code Ready"
STATUS_CONNECTED = "Connected"
STATUS_AUTH_FAILURE = "Authentication Failure"
STATUS_DISCONNECTED = "Disconnected"
STATUS_ERROR = "Error"
