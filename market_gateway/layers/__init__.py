"""
数据流分层架构
  Layer 1 – Acquisition  : 上游行情接口请求（成功 / 拒绝 / 传输失败）
  Layer 2 – Cache        : Redis → 进程内存缓存，绝对 + 滑动过期
  Layer 3 – Processing   : 上游载荷整形与缓存载荷校验
"""
