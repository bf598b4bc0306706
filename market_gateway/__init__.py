"""
行情缓存网关
在外部行情数据源（Binance REST API）前面提供 cache-aside 缓存的 HTTP 接口

架构分层：
  数据获取层 (Acquisition)  → 请求上游行情接口，区分传输失败与上游拒绝
  缓存层     (Cache)        → Redis / 进程内存两级缓存，绝对 + 滑动过期
  处理层     (Processing)   → 将上游 JSON 整形为网关的标准响应结构
  服务层     (Service)      → 按接口编排：缓存键 → 读缓存 → 拉取 → 整形 → 回写
"""

__version__ = "1.0.0"
