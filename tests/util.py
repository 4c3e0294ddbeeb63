import json
from pathlib import Path

from src.bitcoinvm.checksig.sign_types import SignData, sign
from src.bitcoinvm.constants import ECDSA_MESSAGE_HASH
from src.bitcoinvm.execution.script_parser import Trace


def serialize_public_key(pk: tuple[int, int], compressed: bool = True) -> bytes:
    x, y = pk
    if compressed:
        return bytes([0x03 if y % 2 else 0x02]) + x.to_bytes(32, "big")
    return bytes([0x04]) + x.to_bytes(32, "big") + y.to_bytes(32, "big")


def generate_sign_data(sk: int, nonce: int, msg_hash: int = ECDSA_MESSAGE_HASH) -> SignData:
    signature, pk = sign(nonce, sk, msg_hash)
    return SignData(signature, pk, msg_hash)


def save_trace(trace: Trace, public_inputs: list[int], save_to_json_folder, filename, test_name):
    if save_to_json_folder:
        output_dir = Path("data") / save_to_json_folder / "execution"
        output_dir.mkdir(parents=True, exist_ok=True)
        json_file = output_dir / f"{filename}.json"

        data = {}

        if json_file.exists():
            with json_file.open("r") as f:
                data = json.load(f)

        data[test_name] = {
            "script": trace.script.hex(),
            "public_inputs": [hex(x) for x in public_inputs],
            "rows": [
                {
                    "opcode": row.opcode,
                    "script_rlc_acc": hex(row.script_rlc_acc),
                    "num_script_bytes_remaining": row.num_script_bytes_remaining,
                    "stack_top": hex(row.stack_top),
                    "pk_rlc_acc": hex(row.pk_rlc_acc),
                    "num_checksig_opcodes": row.num_checksig_opcodes,
                }
                for row in trace.rows[: trace.script_length + 1]
            ],
        }

        with json_file.open("w") as f:
            json.dump(data, f, indent=4)
