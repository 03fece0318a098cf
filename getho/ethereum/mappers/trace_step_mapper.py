# MIT License
#
# Copyright (c) 2018 Evgeniy Filatov, evgeniyfilatov@gmail.com
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in all
# copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.
#
# Modified for getho: maps geth debug_traceTransaction output (struct logs and
# callTracer frames) instead of parity trace_block output.

from typing import Any, Dict, List, Optional, Tuple

from eth_utils import remove_0x_prefix

from getho.constants.opcode_constants import FRAME_OPENING_OPCODES, VALUE_BEARING_CALL_OPCODES
from getho.ethereum.enums.call_type import CallType
from getho.ethereum.exceptions import TraceMalformedError
from getho.ethereum.models.trace import EthCallFrame, OpcodeStats
from getho.ethereum.models.trace_step import EthTraceStep
from getho.utils.formatter_utils import hex_to_dec, to_normalized_address

ADDRESS_MASK = (1 << 160) - 1


class EthTraceStepMapper(object):
    def struct_logs_to_steps(self, json_dict: Dict[str, Any]) -> List[EthTraceStep]:
        """
        Converts the default geth tracer output into EthTraceSteps.

        geth numbers depths from 1; steps come out 0-based. The first step of
        every new frame gets its call type, target and value from the
        CALL/CREATE step that opened it, read off that step's stack.
        """
        struct_logs = json_dict.get("structLogs") or []

        steps = []
        previous: Optional[Dict[str, Any]] = None
        previous_depth: Optional[int] = None
        for index, struct_log in enumerate(struct_logs):
            depth = self._raw_depth(struct_log, index) - 1

            frame_fields: Dict[str, Any] = {}
            if previous is not None and depth == previous_depth + 1:
                frame_fields = self._frame_opening_fields(previous)

            try:
                steps.append(
                    EthTraceStep(
                        op=struct_log.get("op"),
                        depth=depth,
                        gas=hex_to_dec(struct_log.get("gas")),
                        gas_cost=hex_to_dec(struct_log.get("gasCost")) or 0,
                        pc=hex_to_dec(struct_log.get("pc")),
                        error=struct_log.get("error") or None,
                        **frame_fields,
                    )
                )
            except ValueError as e:
                raise TraceMalformedError(f"Malformed struct log at step {index}: {e}") from e

            previous, previous_depth = struct_log, depth

        return steps

    @staticmethod
    def json_dict_to_call_frame_tree(json_dict: Dict[str, Any]) -> Dict[str, Any]:
        # Nested as-is; flattening happens in TraceBuilderService
        if not isinstance(json_dict, dict) or "type" not in json_dict:
            raise TraceMalformedError("callTracer result has no root frame")
        return json_dict

    @staticmethod
    def call_tracer_dict_to_call_frame(
        json_dict: Dict[str, Any], depth: int, trace_address: Tuple[int, ...], parent_value: int = 0
    ) -> EthCallFrame:
        raw_type = json_dict.get("type")
        try:
            call_type = CallType(str(raw_type).upper())
        except ValueError as e:
            raise TraceMalformedError(f"Unrecognized call type {raw_type!r} at {list(trace_address)}") from e

        try:
            value = hex_to_dec(json_dict.get("value"))
            if value is None:
                # DELEGATECALL runs with the caller's value
                value = parent_value if call_type is CallType.DELEGATECALL else 0

            return EthCallFrame(
                call_type=call_type,
                from_address=to_normalized_address(json_dict.get("from")),
                to_address=to_normalized_address(json_dict.get("to")),
                value=value,
                depth=depth,
                gas_limit=hex_to_dec(json_dict.get("gas")) or 0,
                gas_used=hex_to_dec(json_dict.get("gasUsed")) or 0,
                # callTracer reports no opcodes
                opcodes=OpcodeStats(),
                error=json_dict.get("error") or None,
                trace_address=trace_address,
            )
        except ValueError as e:
            raise TraceMalformedError(f"Malformed call frame at {list(trace_address)}: {e}") from e

    @staticmethod
    def is_call_tracer_result(json_dict: Dict[str, Any]) -> bool:
        return "structLogs" not in json_dict and "type" in json_dict

    @staticmethod
    def _raw_depth(struct_log: Dict[str, Any], index: int) -> int:
        try:
            depth = hex_to_dec(struct_log.get("depth"))
        except ValueError as e:
            raise TraceMalformedError(f"Invalid depth at step {index}: {e}") from e
        if depth is None:
            raise TraceMalformedError(f"Step {index} has no depth")
        return depth

    @staticmethod
    def _frame_opening_fields(opening_log: Dict[str, Any]) -> Dict[str, Any]:
        op = opening_log.get("op")
        if op not in FRAME_OPENING_OPCODES:
            # Left empty, the builder rejects the depth change
            return {}

        fields: Dict[str, Any] = {"call_type": CallType(op)}
        stack = opening_log.get("stack")
        if not stack:
            return fields

        # geth lists the stack bottom first
        if CallType(op).is_create:
            fields["value"] = _stack_word(stack, 1)
        else:
            target = _stack_word(stack, 2)
            if target is not None:
                fields["to_address"] = "0x%040x" % (target & ADDRESS_MASK)
            if op in VALUE_BEARING_CALL_OPCODES:
                fields["value"] = _stack_word(stack, 3)
            elif op == CallType.STATICCALL.value:
                fields["value"] = 0
        return fields


def _stack_word(stack: List[Any], position_from_top: int) -> Optional[int]:
    if len(stack) < position_from_top:
        return None
    word = stack[-position_from_top]
    if isinstance(word, int):
        return word
    try:
        return int(remove_0x_prefix(word) or "0", 16)
    except (TypeError, ValueError) as e:
        raise TraceMalformedError(f"Invalid stack word {word!r}") from e
