CALL_OPCODES = frozenset({"CALL", "CALLCODE", "DELEGATECALL", "STATICCALL"})
CREATE_OPCODES = frozenset({"CREATE", "CREATE2"})
FRAME_OPENING_OPCODES = CALL_OPCODES | CREATE_OPCODES
LOG_OPCODES = frozenset({"LOG0", "LOG1", "LOG2", "LOG3", "LOG4"})

SLOAD = "SLOAD"
SSTORE = "SSTORE"
REVERT = "REVERT"
INVALID = "INVALID"
SELFDESTRUCT = "SELFDESTRUCT"

# geth names undefined opcodes "opcode 0xef not defined"
UNDEFINED_OPCODE_PREFIX = "opcode "

# Opcodes whose value operand sits third from the stack top (gas, to, value)
VALUE_BEARING_CALL_OPCODES = frozenset({"CALL", "CALLCODE"})

ERROR_EXECUTION_REVERTED = "execution reverted"
ERROR_INVALID_OPCODE = "invalid opcode"
ERROR_EXECUTION_FAILED = "execution failed"
