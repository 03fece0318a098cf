from typing import Any, Dict, Iterable, List, Optional, Tuple

from getho.constants.opcode_constants import (
    CALL_OPCODES,
    CREATE_OPCODES,
    ERROR_EXECUTION_FAILED,
    ERROR_EXECUTION_REVERTED,
    ERROR_INVALID_OPCODE,
    INVALID,
    LOG_OPCODES,
    REVERT,
    SELFDESTRUCT,
    SLOAD,
    SSTORE,
    UNDEFINED_OPCODE_PREFIX,
)
from getho.ethereum.enums.call_type import CallType
from getho.ethereum.exceptions import TraceMalformedError
from getho.ethereum.mappers.trace_step_mapper import EthTraceStepMapper
from getho.ethereum.models.trace import EthCallFrame, EthTrace, OpcodeStats
from getho.ethereum.models.trace_step import EthTraceRoot, EthTraceStep
from getho.utils.logger_utils import get_logger

logger = get_logger("Trace Builder Service")


class _FrameBuilder(object):
    def __init__(
        self,
        call_type: CallType,
        from_address: Optional[str],
        to_address: Optional[str],
        value: int,
        depth: int,
        gas_limit: int,
        trace_address: Tuple[int, ...],
    ):
        self.call_type = call_type
        self.from_address = from_address
        self.to_address = to_address
        self.value = value
        self.depth = depth
        self.gas_limit = gas_limit
        self.trace_address = trace_address

        self.exit_gas = gas_limit
        self.consumed_all_gas = False
        self.error: Optional[str] = None
        self.child_count = 0
        self.counters = dict(total=0, calls=0, creates=0, sloads=0, sstores=0, logs=0, reverts=0, invalids=0)
        self.frame: Optional[EthCallFrame] = None

    def next_child_address(self) -> Tuple[int, ...]:
        address = self.trace_address + (self.child_count,)
        self.child_count += 1
        return address

    def record(self, step: EthTraceStep) -> None:
        op = step.op
        self.counters["total"] += 1
        if op in CALL_OPCODES:
            self.counters["calls"] += 1
        elif op in CREATE_OPCODES:
            self.counters["creates"] += 1
        elif op == SLOAD:
            self.counters["sloads"] += 1
        elif op == SSTORE:
            self.counters["sstores"] += 1
        elif op in LOG_OPCODES:
            self.counters["logs"] += 1
        elif op == REVERT:
            self.counters["reverts"] += 1
        elif op == INVALID or op.startswith(UNDEFINED_OPCODE_PREFIX):
            self.counters["invalids"] += 1

        # Only the terminal step decides the frame outcome
        if op == REVERT:
            self.error, self.consumed_all_gas = ERROR_EXECUTION_REVERTED, False
        elif op == INVALID or op.startswith(UNDEFINED_OPCODE_PREFIX):
            self.error, self.consumed_all_gas = ERROR_INVALID_OPCODE, True
        elif step.error:
            self.error, self.consumed_all_gas = step.error, True
        else:
            self.error, self.consumed_all_gas = None, False

        self.exit_gas = max(step.gas - step.gas_cost, 0)

    def finalize(self) -> EthCallFrame:
        exit_gas = 0 if self.consumed_all_gas else self.exit_gas
        gas_used = self.gas_limit - exit_gas
        if gas_used < 0:
            raise TraceMalformedError(
                f"Frame {list(self.trace_address)} exits with {exit_gas} gas, more than its limit {self.gas_limit}"
            )
        try:
            self.frame = EthCallFrame(
                call_type=self.call_type,
                from_address=self.from_address,
                to_address=self.to_address,
                value=self.value,
                depth=self.depth,
                gas_limit=self.gas_limit,
                gas_used=gas_used,
                opcodes=OpcodeStats(**self.counters),
                error=self.error,
                trace_address=self.trace_address,
            )
        except ValueError as e:
            raise TraceMalformedError(f"Invalid frame {list(self.trace_address)}: {e}") from e
        return self.frame


class TraceBuilderService(object):
    """
    Reconstructs the call-frame tree of a transaction from its execution trace.

    Both shapes returned by geth's debug_traceTransaction are accepted: the
    flat struct log stream of the default tracer (rebuilt here with a frame
    stack) and the nested callTracer result (flattened without recursion).
    Frames come out in depth-first pre-order. A malformed input never yields a
    partial trace.
    """

    def __init__(self, trace_step_mapper: Optional[EthTraceStepMapper] = None):
        self.trace_step_mapper = trace_step_mapper or EthTraceStepMapper()

    def build_from_debug_trace(
        self, transaction_hash: str, json_dict: Dict[str, Any], root: Optional[EthTraceRoot] = None
    ) -> EthTrace:
        if self.trace_step_mapper.is_call_tracer_result(json_dict):
            call = self.trace_step_mapper.json_dict_to_call_frame_tree(json_dict)
            return self.build_from_call_tracer(transaction_hash, call)

        steps = self.trace_step_mapper.struct_logs_to_steps(json_dict)
        return self.build(transaction_hash, steps, root=root, failed=bool(json_dict.get("failed")))

    def build(
        self,
        transaction_hash: str,
        steps: Iterable[EthTraceStep],
        root: Optional[EthTraceRoot] = None,
        failed: bool = False,
    ) -> EthTrace:
        root = root or EthTraceRoot()

        pushed: List[_FrameBuilder] = []
        stack: List[_FrameBuilder] = []
        step_count = 0

        for index, step in enumerate(steps):
            step_count += 1
            if step.depth < 0:
                raise TraceMalformedError(f"Step {index} ({step.op}) has negative depth {step.depth}")

            if not stack:
                if step.depth != 0:
                    raise TraceMalformedError(f"Trace starts at depth {step.depth}, expected 0")
                frame = _FrameBuilder(
                    call_type=root.call_type,
                    from_address=root.from_address,
                    to_address=root.to_address,
                    value=root.value,
                    depth=0,
                    gas_limit=step.gas_limit if step.gas_limit is not None else step.gas,
                    trace_address=(),
                )
                stack.append(frame)
                pushed.append(frame)

            top = stack[-1]
            if step.depth > top.depth:
                frame = self._open_frame(top, step, index)
                stack.append(frame)
                pushed.append(frame)
            elif step.depth < top.depth:
                while stack[-1].depth > step.depth:
                    stack.pop().finalize()

            stack[-1].record(step)

        while stack:
            stack.pop().finalize()

        if step_count == 0:
            logger.debug(f"Empty step stream for {transaction_hash}, emitting an empty root frame")
            empty_root = _FrameBuilder(root.call_type, root.from_address, root.to_address, root.value, 0, 0, ())
            empty_root.finalize()
            pushed.append(empty_root)

        frames = tuple(builder.frame for builder in pushed)
        error = frames[0].error
        if error is None and failed:
            error = ERROR_EXECUTION_FAILED

        logger.debug(f"Built {len(frames)} frames from {step_count} steps for {transaction_hash}")
        return EthTrace(
            transaction_hash=transaction_hash,
            total_gas_used=frames[0].gas_used,
            frames=frames,
            error=error,
        )

    def build_from_call_tracer(self, transaction_hash: str, call: Dict[str, Any]) -> EthTrace:
        frames: List[EthCallFrame] = []
        # (node, depth, trace_address, parent value)
        pending: List[Tuple[Dict[str, Any], int, Tuple[int, ...], int]] = [(call, 0, (), 0)]

        while pending:
            node, depth, trace_address, parent_value = pending.pop()
            frame = self.trace_step_mapper.call_tracer_dict_to_call_frame(
                node, depth, trace_address, parent_value=parent_value
            )
            frames.append(frame)

            children = [
                child for child in node.get("calls") or []
                if str(child.get("type", "")).upper() != SELFDESTRUCT
            ]
            # Reversed so the first child is popped first
            for child_index in reversed(range(len(children))):
                pending.append((children[child_index], depth + 1, trace_address + (child_index,), frame.value))

        logger.debug(f"Flattened {len(frames)} callTracer frames for {transaction_hash}")
        return EthTrace(
            transaction_hash=transaction_hash,
            total_gas_used=frames[0].gas_used,
            frames=tuple(frames),
            error=frames[0].error,
        )

    @staticmethod
    def _open_frame(parent: _FrameBuilder, step: EthTraceStep, index: int) -> _FrameBuilder:
        if step.depth != parent.depth + 1:
            raise TraceMalformedError(
                f"Step {index} ({step.op}) jumps from depth {parent.depth} to {step.depth}"
            )
        if step.call_type is None:
            raise TraceMalformedError(f"Step {index} ({step.op}) enters depth {step.depth} without a call type")

        value = step.value
        if value is None:
            # DELEGATECALL runs with the caller's value
            value = parent.value if step.call_type is CallType.DELEGATECALL else 0

        return _FrameBuilder(
            call_type=step.call_type,
            from_address=parent.to_address,
            to_address=step.to_address,
            value=value,
            depth=step.depth,
            gas_limit=step.gas_limit if step.gas_limit is not None else step.gas,
            trace_address=parent.next_child_address(),
        )
