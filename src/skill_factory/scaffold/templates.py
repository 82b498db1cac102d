"""Boilerplate files for a newly created skill."""

import json
from typing import Any

from skill_factory.core.layout import MANIFEST_FILENAME
from skill_factory.core.models import (
    MANIFEST_SCHEMA_URL,
    ResourceProfile,
    to_pascal_case,
)
from skill_factory.core.validator import PROTOCOL

INDEX_TEMPLATE = """/**
 * {name} - {capability}
 * @aiwork4me
 */

import type {{ SkillLinkOutput }} from "./types";
import {{ validateInput, processRequest }} from "./utils";
import {{ withRetry }} from "./resilience";

export interface {pascal}Input {{
  input: string;
  options?: {{ timeout?: number; retries?: number }};
}}

export interface {pascal}Output extends SkillLinkOutput {{
  data: {{ result: string }};
}}

export async function execute(input: {pascal}Input): Promise<{pascal}Output> {{
  const startTime = Date.now();
  validateInput(input);
  const result = await withRetry(() => processRequest(input), {{
    maxRetries: input.options?.retries ?? 3,
  }});
  return {{
    data: {{ result }},
    metadata: {{
      skillName: "{name}",
      timestamp: new Date().toISOString(),
      duration: Date.now() - startTime,
    }},
  }};
}}

export default {{ name: "{name}", description: "{capability}", execute }};
"""

TYPES_TEMPLATE = """export interface SkillMetadata {
  skillName: string;
  timestamp: string;
  duration: number;
  nextSkillHint?: string;
}

export interface SkillLinkOutput {
  metadata: SkillMetadata;
}
"""

UTILS_TEMPLATE = """export function validateInput(input: { input: string }): void {
  if (!input || typeof input.input !== "string" || input.input.length === 0) {
    throw new Error("Invalid input: 'input' must be a non-empty string");
  }
}

export async function processRequest(input: { input: string }): Promise<string> {
  return input.input;
}
"""

RESILIENCE_TEMPLATE = """export interface RetryOptions {
  maxRetries: number;
  baseDelayMs?: number;
}

export async function withRetry<T>(fn: () => Promise<T>, options: RetryOptions): Promise<T> {
  const baseDelay = options.baseDelayMs ?? 100;
  let lastError: unknown;
  for (let attempt = 0; attempt <= options.maxRetries; attempt++) {
    try {
      return await fn();
    } catch (error) {
      lastError = error;
      await new Promise((resolve) => setTimeout(resolve, baseDelay * 2 ** attempt));
    }
  }
  throw lastError;
}
"""

PROGRESS_TEMPLATE = """export interface Progress {
  stage: string;
  percent: number;
}

export type ProgressReporter = (progress: Progress) => void;

export function createProgressReporter(onProgress: ProgressReporter): ProgressReporter {
  return (progress) => onProgress({ ...progress, percent: Math.min(100, progress.percent) });
}
"""

README_TEMPLATE = """# {name}

> {capability}

| Field | Value |
|-------|-------|
| Category | {category} |
| MCP Command | `{mcp_command}` |
| Protocol | {protocol} |
"""

INDEX_TEST_TEMPLATE = """import {{ describe, test, expect }} from "bun:test";
import {{ execute }} from "../index";

describe("{name}", () => {{
  test("returns a result", async () => {{
    const output = await execute({{ input: "test" }});
    expect(output.data.result).toBe("test");
  }});
}});
"""

RESILIENCE_TEST_TEMPLATE = """import { describe, test, expect } from "bun:test";
import { withRetry } from "../resilience";

describe("Resilience", () => {
  test("retries until success", async () => {
    let calls = 0;
    const result = await withRetry(async () => {
      calls++;
      if (calls < 2) throw new Error("transient");
      return "ok";
    }, { maxRetries: 3, baseDelayMs: 1 });
    expect(result).toBe("ok");
  });
});
"""

SECURITY_TEST_TEMPLATE = """import { describe, test, expect } from "bun:test";
import { validateInput } from "../utils";

describe("Security", () => {
  test("rejects empty input", () => {
    expect(() => validateInput({ input: "" })).toThrow();
  });
});
"""


def build_manifest(
    name: str, capability: str, resource_profile: ResourceProfile
) -> dict[str, Any]:
    """Build the ``mcp-config.json`` document for a new skill."""
    pascal = to_pascal_case(name)
    return {
        "$schema": MANIFEST_SCHEMA_URL,
        "name": name,
        "version": "1.0.0",
        "protocol": PROTOCOL,
        "tools": [
            {
                "name": name,
                "description": capability,
                "inputSchema": {
                    "type": "object",
                    "properties": {
                        "input": {"type": "string", "description": "Input parameter"},
                    },
                    "required": ["input"],
                },
                "outputSchema": {
                    "type": "object",
                    "properties": {"result": {"type": "string"}},
                },
            }
        ],
        "skillLink": {
            "compatible": True,
            "inputType": f"{pascal}Input",
            "outputType": f"{pascal}Output",
        },
        "runtime": {
            "type": "bun",
            "version": ">=1.0.0",
            "packageManager": "bun",
            "entrypoint": "./index.ts",
        },
        "permissions": {
            "network": [],
            "filesystem": [],
            "env": [],
            "sandbox": {
                "mode": "strict",
                "allowNetworkOutbound": False,
                "allowFilesystemWrite": False,
                "allowSubprocess": False,
            },
        },
        "deepAgent": {
            "supportsProgress": True,
            "supportsCancellation": True,
            "supportsSelfCorrection": True,
            "maxExecutionTime": 30000,
        },
        "resourceProfile": resource_profile.model_dump(
            mode="json", by_alias=True, exclude_none=True
        ),
    }


def render_skill_files(
    name: str,
    category: str,
    capability: str,
    mcp_command: str,
    resource_profile: ResourceProfile,
) -> dict[str, str]:
    """Render every file of a new skill.

    Returns:
        Mapping of path relative to the skill directory to file content
    """
    pascal = to_pascal_case(name)
    manifest = build_manifest(name, capability, resource_profile)

    return {
        "index.ts": INDEX_TEMPLATE.format(
            name=name, capability=capability, pascal=pascal
        ),
        "types.ts": TYPES_TEMPLATE,
        "utils.ts": UTILS_TEMPLATE,
        "resilience.ts": RESILIENCE_TEMPLATE,
        "progress.ts": PROGRESS_TEMPLATE,
        MANIFEST_FILENAME: json.dumps(manifest, indent=2) + "\n",
        "README.md": README_TEMPLATE.format(
            name=name,
            capability=capability,
            category=category,
            mcp_command=mcp_command,
            protocol=PROTOCOL,
        ),
        "tests/index.test.ts": INDEX_TEST_TEMPLATE.format(name=name),
        "tests/resilience.test.ts": RESILIENCE_TEST_TEMPLATE,
        "tests/security.test.ts": SECURITY_TEST_TEMPLATE,
    }
