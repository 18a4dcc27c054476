from .randomness import SecureRandomSource, RandomSourceUnavailable
from .params import (
    ParameterSet,
    InvalidParameters,
    generate_parameters,
    generate_basis,
    REFERENCE_MODULUS,
    REFERENCE_SECRET_BOUND,
    REFERENCE_NOISE_BOUND,
    REFERENCE_DIMENSIONS,
)
from .noise import NoiseSampler
from .party import Party, ProtocolStateError
from .exchange import Exchange, key_exchange
from .reconciliation import (
    KeyMismatch,
    extract_bit,
    extract_bits,
    assemble_key,
    key_to_hex,
    hex_to_bits,
)
from .wire import WireCodec
