"""Constants shared by the execution and checksig regions of the circuit."""

# Scalar field of BN254, the field the constraint system is defined over
FIELD_MODULUS = 21888242871839275222246405745257275088548364400416034343698204186575808495617

# Script limits
MAX_SCRIPT_PUBKEY_SIZE = 520
MAX_STACK_DEPTH = 33
MAX_CHECKSIG_COUNT = 4

# Byte encoding of -0, also used to represent the empty byte array pushed by OP_0
NEGATIVE_ZERO = 0x80
EMPTY_ARRAY_REPRESENTATION = NEGATIVE_ZERO

# Opcodes
OP_0 = 0x00
OP_PUSH_NEXT1 = 0x01
OP_PUSH_NEXT75 = 0x4B
OP_PUSHDATA1 = 0x4C
OP_PUSHDATA2 = 0x4D
OP_PUSHDATA4 = 0x4E
OP_1NEGATE = 0x4F
OP_RESERVED = 0x50
OP_1 = 0x51
OP_16 = 0x60
OP_NOP = 0x61
OP_CHECKSIG = 0xAC

# Number of bytes of the length field following OP_PUSHDATA1, OP_PUSHDATA2, OP_PUSHDATA4
PUSHDATA_LENGTH_BYTES = {OP_PUSHDATA1: 1, OP_PUSHDATA2: 2, OP_PUSHDATA4: 4}

# SEC1 public key prefixes
PREFIX_PK_COMPRESSED_EVEN_Y = 0x02
PREFIX_PK_COMPRESSED_ODD_Y = 0x03
PREFIX_PK_UNCOMPRESSED = 0x04
COMPRESSED_PK_LENGTH = 33
UNCOMPRESSED_PK_LENGTH = 65

# Message hash signed by every (signature, public key) pair
ECDSA_MESSAGE_HASH = 1

# Limb layout of secp256k1 coordinates inside the circuit
NUMBER_OF_LIMBS = 4
BIT_LEN_LIMB = 72
COORDINATE_BYTES = 32

# Powers of the randomness needed to recombine an uncompressed public key
PK_POW_RAND_SIZE = 64

# Public inputs of the execution region
INSTANCE_SCRIPT_LENGTH_ROW = 0
INSTANCE_SCRIPT_RLC_ROW = 1
INSTANCE_RANDOMNESS_ROW = 2

# Rows of the execution region: first row, one row per script byte, trailing row
EXECUTION_ROWS = MAX_SCRIPT_PUBKEY_SIZE + 2
