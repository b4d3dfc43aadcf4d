# wasmhost

Host-side building blocks for a WebAssembly interpreter. The package lets you
describe a module's imported functions and bind Python callables to them,
manage pages of emitted code, and provides ready-made host function sets for a
small libc, a trace recorder and WASI.

## Installation

```
pip install .
```

For running the tests:

```
pip install .[test]
pytest
```

## What is inside

- `wasmhost.errors` – the exception hierarchy: `M3Error` at the root,
  `FunctionLookupFailed`, `MalformedSignature` (with `MissingReturnType`), and
  the traps `Trap`, `TrapAbort`, `TrapExit` (carrying `code`), `DivisionByZero`,
  `IntegerOverflow`, `IntegerConversion`.
- `wasmhost.config` – the frozen `Config` dataclass of interpreter limits and
  switches (it checks that alignment sizes are powers of two), `detect_arch`
  which names the architecture for a machine string (the host's by default),
  and the byte-swap helpers `bswap16`, `bswap32`, `bswap64`.
- `wasmhost.mathutils` – WebAssembly integer and float semantics: rotations
  (`rotl32`, `rotr32`, `rotl64`, `rotr64`), division that traps on a zero
  divisor (`div_u`, `rem_u`, `div_s`, `rem_s`; `div_s` also traps on overflow),
  float-to-integer conversion with a `TruncTarget` (`trunc` traps,
  `trunc_sat` saturates and maps NaN to 0) and NaN-propagating `fmin` / `fmax`
  that order `-0.0` below `+0.0`.
- `wasmhost.code` – `CodePage`, a fixed-capacity block of words sized up to the
  page alignment (`emit`, `emit32`, `emit64`; a full page raises
  `OverflowError`), and `CodePageList`, a last-in, first-out chain of pages
  (`push`, `pop`, `end`, `clear`).
- `wasmhost.hostapi` – `Memory` (bounds-checked little-endian linear memory with
  `read16/32/64`, `write16/32/64`, `read_bytes`, `write_bytes`), `Frame` (the
  stack slots of one host call: `arg(kind)` takes the next argument,
  `set_return(kind, value)` stores the result in slot 0) and `Runtime`
  (memory, `argv`, `exit_code` and code pages).
- `wasmhost.bind` – `ValueType`, `FuncType`, `type_from_char` and
  `parse_signature` for signature strings such as `"I(iiii)"`, and `HostModule`
  with `add_import`, `find_function`, `link_raw_function` and
  `link_raw_function_ex`.
- `wasmhost.libc` – `link_libc` (`_memset`, `_memmove`, `_memcpy`, `_abort`,
  `_exit`, `_clock` in `env`) and `link_spectest` (the `spectest` print
  functions, which do nothing, and `wasm3.raw_sum`).
- `wasmhost.tracer` – `Tracer`, which links the trace imports of `env` and
  writes semicolon-separated lines to a file (`wasm3_trace.csv` by default) or
  to a stream you pass in. The file is opened once any trace import is linked.
- `wasmhost.wasi_support` – WASI constants and translations: `WasiErrno`,
  `WasiClock`, `WasiWhence`, `Preopen`, `errno_to_wasi`,
  `timespec_to_timestamp`, `default_preopens`, `whence_to_os`, `open_flags`,
  `filetype_from_mode`, `fdflags_from_os`.
- `wasmhost.wasi` – `Wasi`, host functions backed by the operating system, for
  both `wasi_unstable` and `wasi_snapshot_preview1`, and `link_wasi`.

## Example

Linking needs a module loaded into a `Runtime`; host functions are plain
callables taking `(runtime, frame)` and can also be called directly:

```python
from wasmhost.bind import HostModule, parse_signature
from wasmhost.hostapi import Frame, Runtime
from wasmhost.libc import link_spectest, raw_sum

runtime = Runtime()
module = HostModule(runtime=runtime)
module.add_import("wasm3", "raw_sum", parse_signature("I(iiii)"))
link_spectest(module)

imported = module.find_function("wasm3", "raw_sum")
print(imported.compiled is not None)   # True

frame = Frame([10, 20, 30, 40])
raw_sum(runtime, frame)
print(frame.slots[0])                  # 100
```

Linking a name the module does not import raises `FunctionLookupFailed`;
`link_libc`, `link_spectest`, `Tracer.link` and `Wasi.link` skip such names, so
a module is linked only with what it actually imports. Linking on a
`HostModule` without a runtime raises `M3Error`.

## WASI coverage

`Wasi` provides `args_get`, `args_sizes_get`, `environ_get`,
`environ_sizes_get`, `clock_res_get`, `clock_time_get`, `fd_close`,
`fd_datasync`, `fd_fdstat_get`, `fd_fdstat_set_flags`, `fd_prestat_get`,
`fd_prestat_dir_name`, `fd_read`, `fd_seek`, `fd_write`, `path_open`,
`proc_exit` and `random_get`. Each writes its WASI errno as the return value.
The guest environment is always empty, `fd_fdstat_set_flags` accepts the
request without acting on it, and `proc_exit` records the code on the runtime
and raises `TrapExit`. The pre-opened directory is `./` as descriptor 3.

## What it does not do

The package contains no WebAssembly binary parser, compiler or execution
loop: `HostModule` imports are declared by hand with `add_import`, and linking
only records the host callable in a code page. It has no command-line tool.
WASI calls such as `poll_oneoff`, `fd_readdir`, `path_filestat_get` and the
socket calls are not provided.