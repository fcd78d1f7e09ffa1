"""panesync 配置

配置分为以下几类：
- 活动抑制配置：focus 后的抑制窗口、记录过期窗口
- 缓存配置：分支 / PR 查询的 TTL 与容量上限
- 批量执行配置：并发上限
- 屏幕同步配置：快照缓存、全量发送阈值
- 外部命令配置：git / gh 超时与输出上限
- 日志与指标配置
"""

import os

# === 活动抑制配置 ===
SUPPRESS_WINDOW_SECONDS = 2.0  # focus 后该窗口内的 activity 视为 focus 触发的噪声
STALE_WINDOW_SECONDS = 15.0  # focus 记录最长信任时间，超过后下次访问时清除

# === 分支缓存配置 ===
REPO_BRANCH_CACHE_TTL_SECONDS = 3.0
REPO_BRANCH_CACHE_MAX_ENTRIES = 1000
REPO_BRANCH_TIMEOUT_SECONDS = 2.0  # git branch --show-current 超时

# === PR 缓存配置 ===
PR_CREATED_CACHE_TTL_SECONDS = 60.0
PR_CREATED_CACHE_MAX_ENTRIES = 1000
PR_CREATED_BATCH_LIMIT = 1000  # gh pr list --limit
PR_CREATED_TIMEOUT_SECONDS = 5.0

# === 外部命令配置 ===
COMMAND_MAX_OUTPUT_BYTES = 2_000_000  # stdout 超过该长度视为失败

# === 批量执行配置 ===
REPO_STATUS_CONCURRENCY = 8  # 每轮 repo 状态查询的并发上限

# === 屏幕同步配置 ===
SCREEN_CACHE_LIMIT = 10  # 每个 (pane, 行数) 保留的快照数
SCREEN_DEFAULT_LINES = 1000
SCREEN_MAX_LINES = 2000
FULL_SEND_MAX_DELTAS = 10  # delta 数超过该值改为全量发送
FULL_SEND_MAX_CHANGED_LINES = 200  # 变化行数超过该值改为全量发送
FULL_SEND_CHANGED_RATIO = 0.5  # 变化行数占比超过该值改为全量发送

# === Diff 高亮配置 ===
DIFF_NEUTRAL_CLASS = "text-latte-text"
DIFF_ADDITION_CLASS = "text-latte-green"
DIFF_REMOVAL_CLASS = "text-latte-red"

# === 日志配置 ===
LOG_LEVEL = os.environ.get("PANESYNC_LOG_LEVEL", "INFO")  # 日志级别

# === 指标配置 ===
METRICS_ENABLED = True  # 是否启用指标收集
