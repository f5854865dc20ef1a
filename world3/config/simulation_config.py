# world3/config/simulation_config.py
from pydantic import BaseModel, Field


class SimulationConfig(BaseModel):
    """
    SimulationConfig

    语义：
      - streaming session 的调度参数（debounce / channel / worker）
      - 积分器的发散阈值
      - 不包含任何 scenario 参数（那是 ScenarioParams 的职责）
    """

    # update_params 的防抖延迟（毫秒）
    debounce_ms: int = Field(50, ge=0)

    # worker → event loop 的有界 channel 容量
    channel_capacity: int = Field(256, ge=1)

    # 计算线程池大小（所有 session 共享）
    max_workers: int = Field(4, ge=1)

    # 人口规模 stock 的上界，超过即判定发散
    population_bound: float = Field(1e13, gt=0)

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000.0
