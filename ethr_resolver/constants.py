DID_CONTEXT = "https://w3id.org/did/v1"
DID_METHOD = "ethr"

# EthereumDIDRegistry on mainnet
DEFAULT_REGISTRY_ADDRESS = "0xdca7ef03e98e0dc2b855be647c39abe984fcf21b"
DEFAULT_RPC_URL = "http://localhost:8545"
DEFAULT_RPC_TIMEOUT = 10

OWNER_KEY_TYPE = "Secp256k1VerificationKey2018"
OWNER_AUTH_TYPE = "Secp256k1SignatureAuthentication2018"
