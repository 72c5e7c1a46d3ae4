"""Command-line options for the llama-cli runner, read from environment variables."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, fields

from .config import parse_bool


def _env(name: str, default: str | bool = ""):
    return field(default=default, metadata={"env": name})


@dataclass
class LlamaCliArgs:
    """Flag names and values passed to llama-cli.

    Each ``*_cmd`` field holds the flag text (e.g. ``--temp``); the matching
    ``*_val`` field holds its value and ``*_enabled`` switches a bare flag on.
    """

    prompt_cmd: str = _env("PromptCmd")
    prompt_cmd_enabled: bool = _env("PromptCmdEnabled", False)
    prompt_text: str = _env("PromptText")

    chat_template_cmd: str = _env("ChatTemplateCmd")
    chat_template_val: str = _env("ChatTemplateVal")

    multiline_input_cmd: str = _env("MultilineInputCmd")
    multiline_input_enabled: bool = _env("MultilineInputCmdEnabled", False)

    ctx_size_cmd: str = _env("CtxSizeCmd")
    ctx_size_val: str = _env("CtxSizeVal")

    rope_scale_cmd: str = _env("RopeScaleCmd")
    rope_scale_val: str = _env("RopeScaleVal")
    rope_scaling_cmd: str = _env("RopeScalingCmd")
    rope_scaling_val: str = _env("RopeScalingCmdVal")

    prompt_cache_all_cmd: str = _env("PromptCacheAllCmd")
    prompt_cache_all_enabled: bool = False
    prompt_cache_cmd: str = _env("PromptCacheCmd")
    prompt_cache_val: str = _env("PromptCacheVal")

    prompt_file_cmd: str = _env("PromptFileCmd")
    prompt_file_val: str = _env("PromptFileVal")
    reverse_prompt_cmd: str = _env("ReversePromptCmd")
    reverse_prompt_val: str = _env("ReversePromptVal")
    in_prefix_cmd: str = _env("InPrefixCmd")
    in_prefix_val: str = _env("InPrefixVal")
    in_suffix_cmd: str = _env("InSuffixCmd")
    in_suffix_val: str = _env("InSuffixVal")

    gpu_layers_cmd: str = _env("GPULayersCmd")
    gpu_layers_val: str = _env("GPULayersVal")
    threads_batch_cmd: str = _env("ThreadsBatchCmd")
    threads_batch_val: str = _env("ThreadsBatchVal")
    threads_cmd: str = _env("ThreadsCmd")
    threads_val: str = _env("ThreadsVal")

    keep_cmd: str = _env("KeepCmd")
    keep_val: str = _env("KeepVal")
    top_k_cmd: str = _env("TopKCmd")
    top_k_val: str = _env("TopKVal")
    main_gpu_cmd: str = _env("MainGPUCmd")
    main_gpu_val: str = _env("MainGPUVal")
    repeat_penalty_cmd: str = _env("RepeatPenaltyCmd")
    repeat_penalty_val: str = _env("RepeatPenaltyVal")
    repeat_last_penalty_cmd: str = _env("RepeatLastPenaltyCmd")
    repeat_last_penalty_val: str = _env("RepeatLastPenaltyVal")

    mem_lock_cmd: str = _env("MemLockCmd")
    mem_lock_enabled: bool = _env("MemLockCmdEnabled", False)
    no_mmap_cmd: str = ""
    no_mmap_enabled: bool = False
    escape_new_lines_cmd: str = _env("EscapeNewLinesCmd")
    escape_new_lines_enabled: bool = _env("EscapeNewLinesCmdEnabled", False)

    log_verbose_cmd: str = _env("LogVerboseCmd")
    log_verbose_enabled: bool = _env("LogVerboseEnabled", False)

    temperature_cmd: str = _env("TemperatureCmd")
    temperature_val: str = _env("TemperatureVal")
    predict_cmd: str = _env("PredictCmd")
    predict_val: str = _env("PredictVal")

    model_cmd: str = _env("ModelCmd")
    model_full_path: str = _env("ModelFullPathVal")

    no_display_prompt_cmd: str = _env("NoDisplayPromptCmd")
    no_display_prompt_enabled: bool = _env("NoDisplayPromptEnabled", False)
    top_p_cmd: str = _env("TopPCmd")
    top_p_val: str = _env("TopPVal")
    min_p_cmd: str = _env("MinPCmd")
    min_p_val: str = _env("MinPVal")

    model_log_file_cmd: str = _env("ModelLogFileCmd")
    model_log_file_name: str = _env("ModelLogFileNameVal")

    flash_attention_cmd: str = _env("FlashAttentionCmd")
    flash_attention_enabled: bool = _env("FlashAttentionCmdEnabled", False)
    no_conversation_cmd: str = _env("NoConversationCmd")
    no_conversation_enabled: bool = _env("NoConversationCmdEnabled", False)
    no_context_shift_cmd: str = _env("NoContextShiftCmd")
    no_context_shift_enabled: bool = _env("NoContextShiftCmdEnabled", False)

    random_seed_cmd: str = _env("RandomSeedCmd")
    random_seed_val: str = _env("RandomSeedCmdVal")
    yarn_orig_context_cmd: str = _env("YarnOrigContextCmd")
    yarn_orig_context_val: str = _env("YarnOrigContextCmdVal")

    batch_cmd: str = _env("BatchCmd")
    batch_val: str = _env("BatchCmdVal")
    ubatch_cmd: str = _env("UBatchCmd")
    ubatch_val: str = _env("UBatchCmdVal")

    split_mode_cmd: str = _env("SplitModeCmd")
    split_mode_val: str = _env("SplitModeCmdVal")

    def to_argv(self) -> list[str]:
        """Return the argument list: value options with a non-empty value, flags that are enabled."""
        argv: list[str] = []
        for cmd_name, value_name in _ARGV_ORDER:
            cmd = getattr(self, cmd_name)
            value = getattr(self, value_name)
            if isinstance(value, bool):
                if value:
                    argv.append(cmd)
            elif value:
                argv.extend((cmd, value))
        return argv


_ARGV_ORDER: tuple[tuple[str, str], ...] = (
    ("model_cmd", "model_full_path"),
    ("prompt_cmd", "prompt_text"),
    ("chat_template_cmd", "chat_template_val"),
    ("multiline_input_cmd", "multiline_input_enabled"),
    ("ctx_size_cmd", "ctx_size_val"),
    ("rope_scale_cmd", "rope_scale_val"),
    ("rope_scaling_cmd", "rope_scaling_val"),
    ("prompt_cache_cmd", "prompt_cache_val"),
    ("prompt_file_cmd", "prompt_file_val"),
    ("reverse_prompt_cmd", "reverse_prompt_val"),
    ("in_prefix_cmd", "in_prefix_val"),
    ("in_suffix_cmd", "in_suffix_val"),
    ("gpu_layers_cmd", "gpu_layers_val"),
    ("threads_batch_cmd", "threads_batch_val"),
    ("threads_cmd", "threads_val"),
    ("main_gpu_cmd", "main_gpu_val"),
    ("keep_cmd", "keep_val"),
    ("top_k_cmd", "top_k_val"),
    ("repeat_penalty_cmd", "repeat_penalty_val"),
    ("repeat_last_penalty_cmd", "repeat_last_penalty_val"),
    ("mem_lock_cmd", "mem_lock_enabled"),
    ("escape_new_lines_cmd", "escape_new_lines_enabled"),
    ("temperature_cmd", "temperature_val"),
    ("predict_cmd", "predict_val"),
    ("top_p_cmd", "top_p_val"),
    ("min_p_cmd", "min_p_val"),
    ("model_log_file_cmd", "model_log_file_name"),
    ("no_display_prompt_cmd", "no_display_prompt_enabled"),
    ("log_verbose_cmd", "log_verbose_enabled"),
    ("flash_attention_cmd", "flash_attention_enabled"),
    ("no_conversation_cmd", "no_conversation_enabled"),
    ("no_context_shift_cmd", "no_context_shift_enabled"),
    ("random_seed_cmd", "random_seed_val"),
    ("yarn_orig_context_cmd", "yarn_orig_context_val"),
    ("batch_cmd", "batch_val"),
    ("ubatch_cmd", "ubatch_val"),
    ("split_mode_cmd", "split_mode_val"),
)


def load_llama_args(environ: Mapping[str, str] | None = None) -> LlamaCliArgs:
    """Build :class:`LlamaCliArgs` from ``environ`` (the process environment by default)."""
    env = os.environ if environ is None else environ
    values: dict[str, str | bool] = {}
    for spec in fields(LlamaCliArgs):
        key = spec.metadata.get("env")
        if key is None:
            continue
        raw = env.get(key, "")
        values[spec.name] = parse_bool(raw, False) if isinstance(spec.default, bool) else raw
    return LlamaCliArgs(**values)