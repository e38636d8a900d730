# REGRAS ESTRUTURAIS PARA BPMN 2.0 / DMN 1.3
# Compartilhadas entre a geração inicial do processo visual e o refinamento.
# Sem essas regras o bpmn-js/dmn-js não consegue desenhar o XML devolvido.

# 1. BPMN - GERAÇÃO COMPLETA
BPMN_RULES = """
### REGRAS CRÍTICAS E OBRIGATÓRIAS PARA GERAÇÃO DE BPMN (LEIA COM ATENÇÃO)
O XML do BPMN 2.0 gerado DEVE ser 100% válido e visualmente renderizável. A falha em seguir estas regras resultará em um diagrama que não pode ser desenhado.

#### Regra 0: DOCUMENTO BEM FORMADO (A MAIS IMPORTANTE)
- O output DEVE começar SEMPRE com a declaração XML: `<?xml version="1.0" encoding="UTF-8"?>`.
- O elemento raiz do documento DEVE ser SEMPRE `<bpmn:definitions>`.
- O namespace principal do BPMN DEVE ser `http://www.omg.org/spec/BPMN/20100524/MODEL`.

#### Regra 1: VALIDAÇÃO LÓGICA (A ESTRUTURA)
- **REFERÊNCIAS COMPLETAS (ABSOLUTAMENTE OBRIGATÓRIO)**: CADA `<bpmn:sequenceFlow>` e CADA `<bpmn:messageFlow>` DEVE OBRIGATORIAMENTE ter os atributos `sourceRef` e `targetRef` preenchidos. Os valores para estes atributos DEVEM ser IDs válidos de elementos existentes no modelo. É ESTRITAMENTE PROIBIDO omitir `sourceRef` ou `targetRef`. A ausência de qualquer um deles é um erro fatal.
- **FLUXOS DE MENSAGEM**: `<bpmn:messageFlow>` só pode conectar elementos em PARTICIPANTES (`<bpmn:participant>`) diferentes.

#### Regra 2: VALIDAÇÃO VISUAL (O DESENHO - BPMNDI)
- **SEÇÃO BPMNDI OBRIGATÓRIA**: A seção completa `<bpmndi:BPMNDiagram>` com um `<bpmndi:BPMNPlane>` é OBRIGATÓRIA.
- **DESENHE TUDO (1 PARA 1)**: Para CADA elemento lógico definido na seção `<bpmn:process>` ou `<bpmn:collaboration>` (como tasks, gateways, events), DEVE haver exatamente um elemento visual correspondente (`BPMNShape` ou `BPMNEdge`) dentro do `<bpmndi:BPMNPlane>`.
- **IDS CONSISTENTES**: O atributo `bpmnElement` em cada `BPMNShape` e `BPMNEdge` DEVE corresponder ao `id` do elemento lógico que ele representa.
"""

# 2. DMN - GERAÇÃO COMPLETA (com exemplo de casing correto)
DMN_RULES = """
### REGRAS CRÍTICAS E OBRIGATÓRIAS PARA GERAÇÃO DE DMN 1.3 (SE APLICÁVEL)

#### Regra 0: GERE SOMENTE QUANDO NECESSÁRIO
- **SE** a descrição do processo contiver uma decisão explícita ou regra de negócio (ex: "Se o risco for alto, notificar gerente"; "SE condição X E condição Y, ENTÃO resultado A"), você DEVE modelar essa decisão em um DMN.
- **SE NÃO** houver uma decisão clara ou baseada em regras, o valor para "dmn_xml" DEVE ser `null`. É PROIBIDO gerar um DMN vazio.

#### Regra 1: ESTRUTURA, NAMESPACES E CASING
- O XML DEVE começar com `<?xml version="1.0" encoding="UTF-8"?>`.
- O elemento raiz DEVE ser `<dmn:Definitions>` (com 'D' maiúsculo).
- Siga a estrutura COMPLETA abaixo, preenchendo IDs, nomes e regras conforme necessário:
```xml
<dmn:Definitions
    xmlns:dmn="https://www.omg.org/spec/DMN/20180521/MODEL/"
    xmlns:dmndi="https://www.omg.org/spec/DMN/20180521/DMNDI/"
    xmlns:dc="http://www.omg.org/spec/DMN/20180521/DC/"
    xmlns:di="https://www.omg.org/spec/DMN/20180521/DI/"
    id="Definitions_UNIQUE_ID"
    name="DRD"
    namespace="http://camunda.org/schema/1.0/dmn"
    exporter="sez.iO AI"
    exporterVersion="1.0">
  <dmn:Decision id="Decision_ID" name="Nome da Decisao">
    <dmn:DecisionTable id="DecisionTable_ID">
      <dmn:input id="Input_1" label="Condicao de Entrada">
        <dmn:inputExpression id="InputExpression_1" typeRef="string">
          <dmn:text>variavelDeEntrada</dmn:text>
        </dmn:inputExpression>
      </dmn:input>
      <dmn:output id="Output_1" label="Resultado" name="variavelDeSaida" typeRef="string" />
      <dmn:rule id="Rule_1">
        <dmn:inputEntry id="InputEntry_1">
          <dmn:text>"Valor da Condição"</dmn:text>
        </dmn:inputEntry>
        <dmn:outputEntry id="OutputEntry_1">
          <dmn:text>"Resultado Esperado"</dmn:text>
        </dmn:outputEntry>
      </dmn:rule>
    </dmn:DecisionTable>
  </dmn:Decision>
  <dmndi:DMNDI>
    <dmndi:DMNDiagram id="DMNDiagram_ID">
      <dmndi:DMNShape id="DMNShape_Decision_ID" dmnElementRef="Decision_ID">
        <dc:Bounds height="80" width="180" x="160" y="100" />
      </dmndi:DMNShape>
    </dmndi:DMNDiagram>
  </dmndi:DMNDI>
</dmn:Definitions>
```

#### Regra 2: CONTEÚDO MÍNIMO LÓGICO
- Dentro de `<dmn:Definitions>`, DEVE haver pelo menos um `<dmn:Decision>`.
- Cada `<dmn:Decision>` DEVE conter uma `<dmn:DecisionTable>` com pelo menos um `<dmn:input>`, um `<dmn:output>` e uma `<dmn:rule>`.
- O valor de cada célula DEVE estar dentro de uma tag `<dmn:text>`.

#### Regra 3: CONTEÚDO VISUAL OBRIGATÓRIO (DMNDI)
- Para CADA `<dmn:Decision>`, DEVE haver um `<dmndi:DMNShape>` correspondente dentro do `<dmndi:DMNDiagram>`.
- O atributo `dmnElementRef` do `<dmndi:DMNShape>` DEVE ser o ID exato do `<dmn:Decision>`. É PROIBIDO usar `bpmnElement` ou qualquer outro atributo.
"""

# 3. VERSÃO CURTA PARA O REFINAMENTO
# O modelo já tem o XML anterior como referência; repetimos só o que costuma quebrar.
REFINE_DIAGRAM_RULES = """
### REGRAS CRÍTICAS E OBRIGATÓRIAS PARA GERAÇÃO DE BPMN (LEIA COM ATENÇÃO)
- **REFERÊNCIAS COMPLETAS (ABSOLUTAMENTE OBRIGATÓRIO)**: CADA `<bpmn:sequenceFlow>` e CADA `<bpmn:messageFlow>` DEVE OBRIGATORIAMENTE ter os atributos `sourceRef` e `targetRef` preenchidos com IDs válidos. É ESTRITAMENTE PROIBIDO omitir qualquer um deles.
- **SEÇÃO BPMNDI OBRIGATÓRIA**: CADA elemento lógico DEVE ter exatamente um elemento visual correspondente em `<bpmndi:BPMNPlane>`, com `bpmnElement` igual ao `id` do elemento.

### REGRAS CRÍTICAS E OBRIGATÓRIAS PARA GERAÇÃO DE DMN 1.3 (SE APLICÁVEL)
- Se a correção introduzir/modificar uma decisão, gere o XML DMN 1.3 com raiz `<dmn:Definitions>` e a seção `<dmndi:DMNDI>`. Se a correção remover a decisão ou se não houver nenhuma, o valor para "dmn_xml" DEVE ser `null`.
"""
