import pytest

from getho.ethereum.enums.call_type import CallType
from getho.ethereum.exceptions import TraceMalformedError
from getho.ethereum.models.trace_step import EthTraceRoot, EthTraceStep
from getho.ethereum.service.trace_builder_service import TraceBuilderService

TX_HASH = "0x" + "aa" * 32
SENDER = "0x" + "11" * 20
CONTRACT = "0x" + "22" * 20
CALLEE = "0x" + "33" * 20


def step(op, depth, gas, gas_cost=0, **kwargs):
    return EthTraceStep(op=op, depth=depth, gas=gas, gas_cost=gas_cost, **kwargs)


def call_entry(op, depth, gas, call_type=CallType.CALL, to_address=CALLEE, **kwargs):
    return step(op, depth, gas, 3, call_type=call_type, to_address=to_address, **kwargs)


@pytest.fixture
def service():
    return TraceBuilderService()


@pytest.fixture
def root():
    return EthTraceRoot(from_address=SENDER, to_address=CONTRACT, value=7)


def test_single_call(service, root):
    steps = [
        step("PUSH1", 0, 1000, 3),
        step("CALL", 0, 997, 700),
        call_entry("PUSH1", 1, 600, value=0),
        step("STOP", 1, 597),
        step("STOP", 0, 890),
    ]

    trace = service.build(TX_HASH, steps, root=root)

    assert len(trace.frames) == 2
    parent, child = trace.frames
    assert parent.depth == 0 and child.depth == 1
    assert parent.call_type is CallType.CALL
    assert parent.from_address == SENDER
    assert parent.value == 7
    assert parent.gas_limit == 1000
    assert parent.gas_used == 110
    assert parent.opcodes.total == 3
    assert parent.opcodes.calls == 1
    assert child.from_address == CONTRACT
    assert child.to_address == CALLEE
    assert child.gas_limit == 600
    assert child.gas_used == 3
    assert child.opcodes.total == 2
    assert child.trace_address == (0,)
    assert trace.total_gas_used == parent.gas_used
    assert trace.error is None


def test_frames_are_pre_order(service, root):
    steps = [
        step("CALL", 0, 10000, 100),
        call_entry("CALL", 1, 5000),
        call_entry("STOP", 2, 2000),
        step("STOP", 1, 4000),
        step("CALL", 0, 9000, 100),
        call_entry("STOP", 1, 3000),
        step("STOP", 0, 8000),
    ]

    trace = service.build(TX_HASH, steps, root=root)

    depths = [frame.depth for frame in trace.frames]
    assert depths == [0, 1, 2, 1]
    assert [frame.trace_address for frame in trace.frames] == [(), (0,), (0, 0), (1,)]
    for index, frame in enumerate(trace.frames):
        for later in trace.frames[index + 1:]:
            if later.depth <= frame.depth:
                break
            assert later.trace_address[: len(frame.trace_address)] == frame.trace_address
    assert trace.children_of(trace.root) == [trace.frames[1], trace.frames[3]]


def test_depth_jump_is_malformed(service, root):
    steps = [step("CALL", 0, 1000), call_entry("STOP", 2, 500)]

    with pytest.raises(TraceMalformedError, match="jumps from depth 0 to 2"):
        service.build(TX_HASH, steps, root=root)


def test_negative_depth_is_malformed(service, root):
    steps = [step("PUSH1", 0, 1000), step("STOP", -1, 900)]

    with pytest.raises(TraceMalformedError, match="negative depth"):
        service.build(TX_HASH, steps, root=root)


def test_trace_must_start_at_root(service, root):
    with pytest.raises(TraceMalformedError, match="starts at depth 1"):
        service.build(TX_HASH, [call_entry("STOP", 1, 1000)], root=root)


def test_push_requires_call_type(service, root):
    steps = [step("CALL", 0, 1000), step("STOP", 1, 500)]

    with pytest.raises(TraceMalformedError, match="without a call type"):
        service.build(TX_HASH, steps, root=root)


def test_revert_sets_frame_error(service, root):
    steps = [
        step("CALL", 0, 1000, 700),
        call_entry("PUSH1", 1, 600),
        step("REVERT", 1, 500),
        step("STOP", 0, 800),
    ]

    trace = service.build(TX_HASH, steps, root=root)

    child = trace.frames[1]
    assert child.error == "execution reverted"
    assert child.opcodes.reverts == 1
    # Reverted frames refund what is left
    assert child.gas_used == 100
    assert trace.root.error is None
    assert trace.error is None


def test_invalid_opcode_consumes_all_gas(service, root):
    steps = [step("PUSH1", 0, 1000, 3), step("INVALID", 0, 997)]

    trace = service.build(TX_HASH, steps, root=root)

    assert trace.root.error == "invalid opcode"
    assert trace.root.opcodes.invalids == 1
    assert trace.root.gas_used == trace.root.gas_limit == 1000
    assert trace.error == "invalid opcode"


def test_undefined_opcode_counts_as_invalid(service, root):
    trace = service.build(TX_HASH, [step("opcode 0xef not defined", 0, 1000)], root=root)

    assert trace.root.opcodes.invalids == 1
    assert trace.root.error == "invalid opcode"


def test_out_of_gas_in_child(service, root):
    steps = [
        step("CALL", 0, 1000, 700),
        call_entry("SSTORE", 1, 600, error="out of gas"),
        step("STOP", 0, 400),
    ]

    trace = service.build(TX_HASH, steps, root=root)

    child = trace.frames[1]
    assert child.error == "out of gas"
    assert child.gas_used == child.gas_limit == 600
    assert trace.root.error is None


def test_delegatecall_inherits_caller_value(service, root):
    steps = [
        step("DELEGATECALL", 0, 1000, 700),
        call_entry("STOP", 1, 600, call_type=CallType.DELEGATECALL),
        step("STOP", 0, 800),
    ]

    trace = service.build(TX_HASH, steps, root=root)

    assert trace.frames[1].value == root.value


def test_opcode_classification(service, root):
    ops = ["SLOAD", "SSTORE", "SSTORE", "LOG2", "CREATE2", "ADD", "CALLCODE", "STOP"]
    steps = [step(op, 0, 1000 - index) for index, op in enumerate(ops)]

    opcodes = service.build(TX_HASH, steps, root=root).root.opcodes

    assert opcodes.total == 8
    assert opcodes.sloads == 1
    assert opcodes.sstores == 2
    assert opcodes.logs == 1
    assert opcodes.creates == 1
    assert opcodes.calls == 1


def test_empty_step_stream(service, root):
    trace = service.build(TX_HASH, [], root=root)

    assert len(trace.frames) == 1
    assert trace.root.gas_used == 0
    assert trace.total_gas_used == 0
    assert trace.root.to_address == CONTRACT


def test_contract_creation_root(service):
    trace = service.build(TX_HASH, [step("STOP", 0, 100)], root=EthTraceRoot(from_address=SENDER))

    assert trace.root.call_type is CallType.CREATE


def test_failed_flag_without_frame_error(service, root):
    trace = service.build(TX_HASH, [step("STOP", 0, 100)], root=root, failed=True)

    assert trace.error == "execution failed"


def test_build_from_struct_logs(service, root):
    raw = {
        "failed": False,
        "structLogs": [
            {"pc": 0, "op": "PUSH1", "gas": 1000, "gasCost": 3, "depth": 1},
            {
                "pc": 2,
                "op": "STATICCALL",
                "gas": 997,
                "gasCost": 700,
                "depth": 1,
                "stack": ["0x0", "0x0", "0x0", "0x0", CALLEE, "0x258"],
            },
            {"pc": 0, "op": "STOP", "gas": 600, "gasCost": 0, "depth": 2},
            {"pc": 3, "op": "RETURN", "gas": 890, "gasCost": 0, "depth": 1},
        ],
    }

    trace = service.build_from_debug_trace(TX_HASH, raw, root=root)

    assert [frame.call_type for frame in trace.frames] == [CallType.CALL, CallType.STATICCALL]
    assert trace.frames[1].to_address == CALLEE
    assert trace.frames[1].value == 0


def call_tracer_result():
    return {
        "type": "CALL",
        "from": SENDER,
        "to": CONTRACT,
        "value": "0x7",
        "gas": "0x7530",
        "gasUsed": "0x5208",
        "calls": [
            {
                "type": "DELEGATECALL",
                "from": CONTRACT,
                "to": CALLEE,
                "gas": "0x1000",
                "gasUsed": "0x100",
                "calls": [
                    {"type": "STATICCALL", "from": CALLEE, "to": SENDER, "gas": "0x100", "gasUsed": "0x10"},
                ],
            },
            {"type": "SELFDESTRUCT", "from": CONTRACT, "to": SENDER, "value": "0x1"},
            {
                "type": "CREATE2",
                "from": CONTRACT,
                "to": CALLEE,
                "value": "0x0",
                "gas": "0x2000",
                "gasUsed": "0x2000",
                "error": "out of gas",
            },
        ],
    }


def test_build_from_call_tracer(service):
    trace = service.build_from_call_tracer(TX_HASH, call_tracer_result())

    assert [frame.call_type for frame in trace.frames] == [
        CallType.CALL,
        CallType.DELEGATECALL,
        CallType.STATICCALL,
        CallType.CREATE2,
    ]
    assert [frame.trace_address for frame in trace.frames] == [(), (0,), (0, 0), (1,)]
    assert trace.total_gas_used == 21000
    assert trace.frames[3].error == "out of gas"
    assert trace.error is None


def test_build_from_debug_trace_detects_call_tracer(service, root):
    trace = service.build_from_debug_trace(TX_HASH, call_tracer_result(), root=root)

    assert len(trace.frames) == 4


def test_call_tracer_gas_used_above_limit(service):
    result = call_tracer_result()
    result["gasUsed"] = "0x8000"

    with pytest.raises(TraceMalformedError):
        service.build_from_call_tracer(TX_HASH, result)


def test_call_tracer_delegatecall_inherits_caller_value(service):
    trace = service.build_from_call_tracer(TX_HASH, call_tracer_result())

    assert [frame.value for frame in trace.frames] == [7, 7, 0, 0]
